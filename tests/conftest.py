"""Shared fixtures: fake OCR and camera collaborators, sample images."""

import asyncio

import cv2
import numpy as np
import pytest

from receipt_ledger.errors import CaptureError, OCRError
from receipt_ledger.models import CapturedImage


def make_png(width: int = 40, height: int = 20) -> bytes:
    ok, encoded = cv2.imencode('.png', np.full((height, width, 3), 255, dtype=np.uint8))
    assert ok
    return encoded.tobytes()


class FakeOCR:
    """Returns canned text per image source, or fails on request."""

    def __init__(self, texts=None, fail_sources=(), delay: float = 0.0):
        self.texts = dict(texts or {})
        self.fail_sources = set(fail_sources)
        self.delay = delay
        self.calls = []

    async def recognize(self, image: CapturedImage) -> str:
        self.calls.append(image.source)
        if self.delay:
            await asyncio.sleep(self.delay)
        if image.source in self.fail_sources:
            raise OCRError("engine unavailable")
        return self.texts.get(image.source, "")


class FakeCamera:
    """Hands out numbered stills without touching a real device."""

    def __init__(self, available: bool = True):
        self.available = available
        self.started = False
        self.count = 0

    def start(self) -> int:
        if not self.available:
            raise CaptureError("Could not access any camera. Please check permissions and try again.")
        self.started = True
        return 0

    def grab_still(self) -> CapturedImage:
        if not self.started:
            raise CaptureError("Camera is not started")
        self.count += 1
        return CapturedImage(data=make_png(), width=40, height=20, source=f"still-{self.count}")

    def stop(self):
        self.started = False


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def receipt_image(png_bytes):
    return CapturedImage(data=png_bytes, width=40, height=20, source="receipt-1")
