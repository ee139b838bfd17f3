"""Tests for records and manual entry validation."""

from decimal import Decimal

import pytest
from receipt_ledger.errors import ValidationError
from receipt_ledger.models import CapturedImage, Record, parse_amount, validate_manual_entry


class TestValidateManualEntry:
    """Test suite for manual entry validation."""
    
    def test_valid_entry(self):
        record = validate_manual_entry(" 201897 ", " AMEX ", "50")
        assert record == Record(chk="201897", card_type="AMEX", amount=Decimal("50"))
    
    def test_numeric_amounts(self):
        assert validate_manual_entry("1", "VISA", 12).amount == Decimal("12")
        assert validate_manual_entry("1", "VISA", 0).amount == Decimal("0")
        assert validate_manual_entry("1", "VISA", Decimal("3.5")).amount == Decimal("3.5")
    
    def test_all_missing_reported_together(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_manual_entry("", None, "")
        
        assert exc_info.value.errors == [
            "CHK is required",
            "Card type is required",
            "Amount is required",
        ]
    
    @pytest.mark.parametrize("amount", ["-1", "abc", "NaN", "Infinity", "1,000", True])
    def test_invalid_amount(self, amount):
        with pytest.raises(ValidationError) as exc_info:
            validate_manual_entry("1", "VISA", amount)
        
        assert len(exc_info.value.errors) == 1
        assert "non-negative number" in exc_info.value.errors[0]
    
    def test_whitespace_only_fields(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_manual_entry("   ", "\t", "5")
        assert len(exc_info.value.errors) == 2


class TestRecord:
    """Test suite for Record helpers."""
    
    def test_display_amount(self):
        assert Record("1", "VISA", Decimal("200.5")).display_amount == "200.50"
        assert Record("1", "VISA").display_amount == "0.00"
    
    @pytest.mark.parametrize("amount, shown", [
        (Decimal("1e30"), "1000000000000000000000000000000.00"),
        (Decimal("123456789012345678901234567890.005"), "123456789012345678901234567890.00"),
        (Decimal("0.125"), "0.12"),
    ])
    def test_display_amount_any_size(self, amount, shown):
        assert Record("1", "VISA", amount).display_amount == shown
    
    def test_parse_amount(self):
        assert parse_amount("7.25") == Decimal("7.25")
        assert parse_amount(None) is None
        assert parse_amount("-0.01") is None


class TestCapturedImage:
    """Test suite for loading images from disk."""
    
    def test_from_file(self, tmp_path, png_bytes):
        path = tmp_path / "receipt.png"
        path.write_bytes(png_bytes)
        
        image = CapturedImage.from_file(path)
        
        assert (image.width, image.height) == (40, 20)
        assert image.source == str(path)
        assert image.data == png_bytes
    
    def test_from_file_rejects_non_images(self, tmp_path):
        path = tmp_path / "notes.png"
        path.write_text("not an image")
        
        with pytest.raises(ValueError):
            CapturedImage.from_file(path)
