"""Tesseract OCR wrapper for receipt photos."""

import logging
import json
from pathlib import Path
from typing import Optional
import hashlib
import asyncio
import cv2
import numpy as np
import pytesseract

from .errors import OCRError
from .models import CapturedImage
from .settings import OCRSettings

logger = logging.getLogger(__name__)


class OCRProcessor:
    """Wrapper for pytesseract with a bounded, awaitable recognition call."""

    def __init__(self, settings: Optional[OCRSettings] = None, cache_dir: Optional[Path] = None):
        """
        Initialize OCR processor.

        Args:
            settings: Language hint, timeout and Tesseract engine flags
            cache_dir: Directory for cached OCR results keyed by image hash
        """
        self.settings = settings or OCRSettings()
        self.language = self.settings.language
        self.timeout = self.settings.timeout
        self.config = f"--oem {self.settings.oem} --psm {self.settings.psm}"
        self.cache_dir = cache_dir
        logger.info(f"Initialized Tesseract OCR (lang={self.language}, config='{self.config}')")

    def get_image_hash(self, image: CapturedImage) -> str:
        """Generate hash for image bytes to detect repeated scans."""
        return hashlib.md5(image.data).hexdigest()

    def decode_image(self, image: CapturedImage) -> np.ndarray:
        """Decode encoded image bytes into an RGB array for Tesseract."""
        img_array = cv2.imdecode(np.frombuffer(image.data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if img_array is None:
            raise OCRError(f"Could not decode image from {image.source}")

        if img_array.ndim == 2:  # Grayscale
            return img_array
        if img_array.shape[2] == 4:  # BGRA
            return cv2.cvtColor(img_array, cv2.COLOR_BGRA2RGB)
        return cv2.cvtColor(img_array, cv2.COLOR_BGR2RGB)

    def recognize_sync(self, image: CapturedImage) -> str:
        """
        Run Tesseract on a captured image.

        Args:
            image: Encoded still image

        Returns:
            Recognized plain text
        """
        cached = self._load_cached(image)
        if cached is not None:
            return cached

        try:
            img_array = self.decode_image(image)
            logger.info(f"Running Tesseract on {image.source} ({image.width}x{image.height})")
            text = pytesseract.image_to_string(img_array, lang=self.language, config=self.config)
        except OCRError:
            raise
        except Exception as e:
            logger.error(f"OCR failed for {image.source}: {e}")
            raise OCRError(f"Text recognition failed: {e}") from e

        self._store_cached(image, text)
        logger.debug(f"Recognized {len(text)} characters from {image.source}")
        return text

    async def recognize(self, image: CapturedImage) -> str:
        """Recognize text in a worker thread, bounded by the configured timeout."""
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.recognize_sync, image),
                timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            logger.error(f"OCR timed out after {self.timeout}s for {image.source}")
            raise OCRError(f"Text recognition timed out after {self.timeout} seconds") from e

    def _cache_path(self, image: CapturedImage) -> Optional[Path]:
        if self.cache_dir is None:
            return None
        stem = Path(image.source).stem.replace(':', '_')
        return self.cache_dir / f"{stem}_{self.get_image_hash(image)}.json"

    def _load_cached(self, image: CapturedImage) -> Optional[str]:
        """Cached text for the image; an unreadable cache entry counts as a miss."""
        json_path = self._cache_path(image)
        if json_path is None or not json_path.exists():
            return None
        logger.info(f"Loading cached OCR result for {image.source}")
        try:
            with open(json_path, 'r', encoding='utf-8') as f:
                cached = json.load(f)
            text = cached['text']
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable OCR cache {json_path.name}: {e}")
            return None
        if not isinstance(text, str):
            logger.warning(f"Ignoring OCR cache {json_path.name}: text is not a string")
            return None
        return text

    def _store_cached(self, image: CapturedImage, text: str):
        json_path = self._cache_path(image)
        if json_path is None:
            return
        ocr_result = {
            'source': image.source,
            'image_hash': self.get_image_hash(image),
            'width': image.width,
            'height': image.height,
            'language': self.language,
            'text': text,
        }
        try:
            json_path.parent.mkdir(parents=True, exist_ok=True)
            with open(json_path, 'w', encoding='utf-8') as f:
                json.dump(ocr_result, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.warning(f"Could not write OCR cache {json_path}: {e}")
