"""Tests for the Tesseract wrapper, with pytesseract patched out."""

import asyncio
import json
import time
from decimal import Decimal

import numpy as np
import pytest
from conftest import FakeCamera
from receipt_ledger import ocr as ocr_module
from receipt_ledger.engine import EngineState, ReconciliationEngine
from receipt_ledger.errors import OCRError
from receipt_ledger.models import CapturedImage, Record
from receipt_ledger.ocr import OCRProcessor
from receipt_ledger.settings import OCRSettings


class TestOCRProcessor:
    """Test suite for OCRProcessor."""
    
    def setup_method(self):
        self.calls = []
    
    def fake_tesseract(self, image, lang=None, config=None):
        self.calls.append((image.shape, lang, config))
        return "CHK 201897\nVISA\nSAR 125.00\n"
    
    def test_recognize_passes_language_hint(self, monkeypatch, receipt_image):
        monkeypatch.setattr(ocr_module.pytesseract, "image_to_string", self.fake_tesseract)
        processor = OCRProcessor(OCRSettings(language="eng", oem=1, psm=4))
        
        text = asyncio.run(processor.recognize(receipt_image))
        
        assert "CHK 201897" in text
        shape, lang, config = self.calls[0]
        assert shape == (20, 40, 3)
        assert lang == "eng"
        assert config == "--oem 1 --psm 4"
    
    def test_undecodable_image(self):
        processor = OCRProcessor()
        broken = CapturedImage(data=b"garbage", width=1, height=1, source="broken")
        
        with pytest.raises(OCRError):
            asyncio.run(processor.recognize(broken))
    
    def test_tesseract_failure_wrapped(self, monkeypatch, receipt_image):
        def explode(*args, **kwargs):
            raise RuntimeError("tesseract is not installed")
        monkeypatch.setattr(ocr_module.pytesseract, "image_to_string", explode)
        
        with pytest.raises(OCRError, match="tesseract is not installed"):
            asyncio.run(OCRProcessor().recognize(receipt_image))
    
    def test_timeout_is_ocr_failure(self, monkeypatch, receipt_image):
        def slow(*args, **kwargs):
            time.sleep(0.5)
            return "late"
        monkeypatch.setattr(ocr_module.pytesseract, "image_to_string", slow)
        processor = OCRProcessor(OCRSettings(timeout=0.05))
        
        with pytest.raises(OCRError, match="timed out"):
            asyncio.run(processor.recognize(receipt_image))
    
    def test_decode_grayscale_kept(self):
        import cv2
        ok, encoded = cv2.imencode('.png', np.zeros((8, 12), dtype=np.uint8))
        image = CapturedImage(data=encoded.tobytes(), width=12, height=8, source="gray")
        
        assert OCRProcessor().decode_image(image).shape == (8, 12)
    
    def test_cache_round_trip(self, monkeypatch, tmp_path, receipt_image):
        monkeypatch.setattr(ocr_module.pytesseract, "image_to_string", self.fake_tesseract)
        processor = OCRProcessor(cache_dir=tmp_path)
        
        first = processor.recognize_sync(receipt_image)
        second = processor.recognize_sync(receipt_image)
        
        assert first == second
        assert len(self.calls) == 1
        cached = list(tmp_path.glob("*.json"))
        assert len(cached) == 1
        payload = json.loads(cached[0].read_text(encoding='utf-8'))
        assert payload['image_hash'] == processor.get_image_hash(receipt_image)
        assert payload['language'] == "eng"
    
    @pytest.mark.parametrize("content", [
        "{not json",
        '{"source": "receipt-1"}',
        '["CHK 1"]',
        '{"text": 5}',
    ])
    def test_unreadable_cache_is_a_miss(self, monkeypatch, tmp_path, receipt_image, content):
        monkeypatch.setattr(ocr_module.pytesseract, "image_to_string", self.fake_tesseract)
        processor = OCRProcessor(cache_dir=tmp_path)
        processor._cache_path(receipt_image).write_text(content, encoding='utf-8')
        
        text = processor.recognize_sync(receipt_image)
        
        assert "CHK 201897" in text
        assert len(self.calls) == 1
        payload = json.loads(processor._cache_path(receipt_image).read_text(encoding='utf-8'))
        assert payload['text'] == text
    
    def test_unwritable_cache_does_not_fail(self, monkeypatch, tmp_path, receipt_image):
        monkeypatch.setattr(ocr_module.pytesseract, "image_to_string", self.fake_tesseract)
        blocker = tmp_path / "cache"
        blocker.write_text("not a directory", encoding='utf-8')
        processor = OCRProcessor(cache_dir=blocker / "ocr")
        
        text = asyncio.run(processor.recognize(receipt_image))
        
        assert "CHK 201897" in text
    
    def test_engine_recovers_from_corrupt_cache(self, monkeypatch, tmp_path, receipt_image):
        monkeypatch.setattr(ocr_module.pytesseract, "image_to_string", self.fake_tesseract)
        processor = OCRProcessor(cache_dir=tmp_path)
        processor._cache_path(receipt_image).write_text("{not json", encoding='utf-8')
        engine = ReconciliationEngine(ocr=processor, camera=FakeCamera())
        
        ledger = asyncio.run(engine.process(receipt_image))
        
        assert ledger[0] == Record("201897", "VISA", Decimal("125.00"))
        assert engine.state == EngineState.IDLE
        assert engine.drain_notices() == []
