"""Reconciliation engine: capture, recognize, extract and merge into the ledger."""

import logging
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .capture import CameraCapture
from .errors import (CaptureError, EmptyLedgerError, EngineBusyError, OCRError,
                     ValidationError)
from .export import LedgerExporter
from .extract import FieldExtractor
from .ledger import Ledger
from .models import AmountInput, CapturedImage, Notice, PendingCapture, Record, validate_manual_entry
from .ocr import OCRProcessor
from .settings import Settings

logger = logging.getLogger(__name__)

LedgerListener = Callable[[Ledger], None]


class EngineState(Enum):
    IDLE = "idle"
    CAPTURED = "captured"
    PROCESSING = "processing"


class ReconciliationEngine:
    """
    Single-writer orchestrator over one ledger.

    Only one receipt is processed at a time: capture, process and reset are
    rejected with ``EngineBusyError`` while an OCR call is in flight. Failures
    of collaborators and invalid manual input never change the ledger; they
    are reported as notices and the engine returns to ``IDLE``.
    """

    def __init__(self,
                 ocr: Optional[OCRProcessor] = None,
                 camera: Optional[CameraCapture] = None,
                 extractor: Optional[FieldExtractor] = None,
                 settings: Optional[Settings] = None):
        self.settings = settings or Settings()
        self.ocr = ocr if ocr is not None else OCRProcessor(self.settings.ocr)
        self.camera = camera if camera is not None else CameraCapture(self.settings.camera)
        self.extractor = extractor or FieldExtractor(self.settings.extraction)

        self.ledger = Ledger()
        self.state = EngineState.IDLE
        self.pending: Optional[PendingCapture] = None
        self.notices: List[Notice] = []
        self._listeners: List[LedgerListener] = []

    # Observation

    def subscribe(self, listener: LedgerListener):
        """Call ``listener`` with the new ledger after every change."""
        self._listeners.append(listener)

    def _commit(self, ledger: Ledger) -> Ledger:
        self.ledger = ledger
        for listener in self._listeners:
            listener(ledger)
        return ledger

    def _notify(self, level: str, message: str) -> Notice:
        notice = Notice(level=level, message=message)
        self.notices.append(notice)
        log = logger.error if level == "error" else logger.warning if level == "warning" else logger.info
        log(message)
        return notice

    def drain_notices(self) -> List[Notice]:
        """Return and forget the notices raised so far."""
        notices, self.notices = self.notices, []
        return notices

    def _ensure_not_processing(self, action: str):
        if self.state == EngineState.PROCESSING:
            self._notify("warning", f"Cannot {action} while a receipt is being processed")
            raise EngineBusyError(f"Cannot {action} while a receipt is being processed")

    # Capture

    def start_capture(self) -> int:
        """Open the camera; returns the device index that answered."""
        try:
            return self.camera.start()
        except CaptureError as e:
            self._notify("error", str(e))
            raise

    def stop_capture(self):
        self.camera.stop()

    def capture_still(self, target_chk: Optional[str] = None) -> CapturedImage:
        """
        Grab a still from the camera and hold it as the pending capture.

        Args:
            target_chk: Existing CHK the scan should be merged into

        Returns:
            The captured image
        """
        self._ensure_not_processing("capture")
        try:
            image = self.camera.grab_still()
        except CaptureError as e:
            self._notify("error", str(e))
            raise
        return self.hold(image, target_chk)

    def hold(self, image: CapturedImage, target_chk: Optional[str] = None) -> CapturedImage:
        """Hold an already acquired image as the pending capture."""
        self._ensure_not_processing("capture")
        if self.pending is not None:
            logger.info(f"Replacing unprocessed capture from {self.pending.image.source}")
        self.pending = PendingCapture(image=image, target_chk=_clean_target(target_chk))
        self.state = EngineState.CAPTURED
        return image

    # Automatic path

    async def process(self,
                      image: Optional[CapturedImage] = None,
                      target_chk: Optional[str] = None) -> Ledger:
        """
        Recognize a receipt image and merge the extracted record.

        Args:
            image: Image to process; defaults to the pending capture
            target_chk: Existing CHK to merge into; defaults to the pending
                capture's target

        Returns:
            The ledger after the merge, or unchanged when recognition fails

        Raises:
            EngineBusyError: when another receipt is being processed
        """
        self._ensure_not_processing("process a receipt")

        if image is not None:
            self.hold(image, target_chk)
        elif self.pending is None:
            self._notify("warning", "No captured image to process")
            return self.ledger
        elif target_chk is not None:
            self.pending.target_chk = _clean_target(target_chk)

        pending = self.pending
        self.state = EngineState.PROCESSING
        try:
            text = await self.ocr.recognize(pending.image)
        except OCRError as e:
            self._notify("error", f"Could not read receipt: {e}")
            return self.ledger
        except Exception as e:
            logger.debug(f"Unexpected failure processing {pending.image.source}", exc_info=True)
            self._notify("error", f"Could not process receipt: {e}")
            return self.ledger
        finally:
            self.pending = None
            self.state = EngineState.IDLE

        candidate = self.extractor.extract(text)
        return self._commit(self.ledger.merge_automatic(candidate, pending.target_chk))

    def merge_text(self, text: str, target_chk: Optional[str] = None) -> Tuple[Record, Ledger]:
        """Extract and merge already recognized text, bypassing OCR."""
        self._ensure_not_processing("merge a receipt")
        candidate = self.extractor.extract(text)
        return candidate, self._commit(self.ledger.merge_automatic(candidate, _clean_target(target_chk)))

    # Manual path

    def add_manual(self, chk: Optional[str], card_type: Optional[str], amount: AmountInput) -> Ledger:
        """Validate a typed record and merge it under its own CHK."""
        self._ensure_not_processing("add an entry")
        try:
            record = validate_manual_entry(chk, card_type, amount)
        except ValidationError as e:
            self._notify("warning", f"Entry not added: {e}")
            return self.ledger
        return self._commit(self.ledger.merge_manual(record))

    def edit_manual(self, index: int, chk: Optional[str], card_type: Optional[str],
                    amount: AmountInput) -> Ledger:
        """Validate a typed record and overwrite the entry at ``index`` with it."""
        self._ensure_not_processing("edit an entry")
        try:
            record = validate_manual_entry(chk, card_type, amount)
            ledger = self.ledger.replace_at(index, record)
        except (ValidationError, IndexError, ValueError) as e:
            self._notify("warning", f"Entry {index} not changed: {e}")
            return self.ledger
        return self._commit(ledger)

    # Reset and export

    def reset(self) -> Ledger:
        """Drop the pending capture and every ledger entry."""
        self._ensure_not_processing("reset")
        self.pending = None
        self.state = EngineState.IDLE
        logger.info(f"Ledger reset ({len(self.ledger)} entries dropped)")
        return self._commit(self.ledger.cleared())

    def export_snapshot(self) -> Tuple[Record, ...]:
        return self.ledger.records

    def export(self, output_path: Path, include_summary: Optional[bool] = None) -> Optional[Path]:
        """Write the ledger to a file; returns None when the ledger is empty."""
        exporter = LedgerExporter(Path(output_path), self.settings.export)
        try:
            return exporter.export(self.export_snapshot(), include_summary=include_summary)
        except EmptyLedgerError as e:
            self._notify("warning", str(e))
            return None


def _clean_target(target_chk: Optional[str]) -> Optional[str]:
    if target_chk is None:
        return None
    target_chk = target_chk.strip()
    return target_chk or None
