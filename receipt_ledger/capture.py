"""Camera access and still-frame capture through OpenCV."""

import logging
from typing import Optional

import cv2

from .errors import CaptureError
from .models import CapturedImage
from .settings import CameraSettings

logger = logging.getLogger(__name__)


class CameraCapture:
    """Open the preferred camera (falling back to the default) and grab stills."""

    def __init__(self, settings: Optional[CameraSettings] = None):
        self.settings = settings or CameraSettings()
        self.capture = None
        self.device: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.capture is not None

    def start(self) -> int:
        """
        Open the first camera that responds, in configured preference order.

        Returns:
            Index of the opened device

        Raises:
            CaptureError: when no configured device can be opened
        """
        if self.is_open:
            return self.device

        for position, device in enumerate(self.settings.devices):
            capture = cv2.VideoCapture(device)
            if capture.isOpened():
                self.capture = capture
                self.device = device
                logger.info(f"Opened camera device {device}")
                return device

            capture.release()
            if position == 0:
                logger.warning(f"Unable to access camera device {device}. Trying fallback camera.")
            else:
                logger.warning(f"Unable to access camera device {device}")

        raise CaptureError("Could not access any camera. Please check permissions and try again.")

    def grab_still(self) -> CapturedImage:
        """Read a frame from the open camera and encode it as PNG."""
        if not self.is_open:
            raise CaptureError("Camera is not started")

        # Discard the first frames while exposure settles
        for _ in range(self.settings.warmup_frames):
            self.capture.grab()

        ok, frame = self.capture.read()
        if not ok or frame is None:
            raise CaptureError(f"Failed to read a frame from camera {self.device}")

        height, width = frame.shape[:2]
        ok, encoded = cv2.imencode('.png', frame)
        if not ok:
            raise CaptureError("Failed to encode captured frame")

        logger.info(f"Captured still {width}x{height} from camera {self.device}")
        return CapturedImage(data=encoded.tobytes(), width=width, height=height,
                             source=f"camera:{self.device}")

    def stop(self):
        if self.capture is not None:
            self.capture.release()
            logger.info(f"Released camera device {self.device}")
        self.capture = None
        self.device = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
        return False
