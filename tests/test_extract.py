"""Tests for the field extractor."""

from decimal import Decimal

import pytest
from receipt_ledger.extract import FieldExtractor, extract_fields
from receipt_ledger.models import Record
from receipt_ledger.settings import ExtractionSettings


class TestFieldExtractor:
    """Test suite for FieldExtractor."""
    
    def setup_method(self):
        self.extractor = FieldExtractor()
    
    def test_complete_receipt(self):
        """All three fields are extracted from a typical receipt."""
        receipt_text = """
        AL NAHDI PHARMACY
        TID 00012345  MID 998877
        CHK 201897
        VISA
        ************4821
        PURCHASE
        SAR 125.00
        APPROVED 000123
        """
        
        record = self.extractor.extract(receipt_text)
        
        assert record == Record(chk="201897", card_type="VISA", amount=Decimal("125.00"))
    
    def test_inline_example(self):
        record = extract_fields("... CHK 201897 ... VISA ... SAR 125.00")
        
        assert record.chk == "201897"
        assert record.card_type == "VISA"
        assert record.amount == Decimal("125.00")
    
    def test_nothing_found(self):
        """Misses resolve to sentinels instead of errors."""
        record = self.extractor.extract("THANK YOU FOR SHOPPING")
        assert record == Record(chk="unknown", card_type="unknown", amount=Decimal("0"))
    
    @pytest.mark.parametrize("text", [
        "",
        None,
        "\n\n\n",
        "@@##!!",
        "CHK SAR VISA",
        "CHK 201897 VISA SAR 123456789012345678901234567890.00",
        "SAR " + "9" * 60,
        "CHK \u0661\u0662\u0663 SAR \u0665\u0660",
    ])
    def test_extraction_is_total(self, text):
        """Every field is always filled, whatever the input."""
        record = self.extractor.extract(text)
        
        assert record.chk
        assert record.card_type
        assert record.amount is not None
        assert record.amount >= 0
    
    def test_long_amount(self):
        """Amounts beyond the default decimal precision are extracted exactly."""
        record = self.extractor.extract("CHK 201897 VISA SAR 123456789012345678901234567890.00")
        
        assert record.amount == Decimal("123456789012345678901234567890.00")
        assert record.display_amount == "123456789012345678901234567890.00"
    
    def test_arabic_indic_digits_not_read(self):
        record = self.extractor.extract("CHK \u0661\u0662\u0663 SAR \u0665\u0660")
        assert record == Record(chk="unknown", card_type="unknown", amount=Decimal("0"))
    
    def test_fields_are_independent(self):
        """A miss on one field does not block the others."""
        record = self.extractor.extract("mada\nSAR 30.5")
        
        assert record.chk == "unknown"
        assert record.card_type == "MADA"
        assert record.amount == Decimal("30.5")
    
    def test_details(self):
        details = self.extractor.extract_with_details("CHK 7\nAMEX\nTOTAL SAR 9.00")
        
        assert details['record'].chk == "7"
        assert details['source_lines']['amount'] == "TOTAL SAR 9.00"
        assert details['confidence_scores']['card_type'] > 0
        assert set(details['confidence_scores']) == {'chk', 'amount', 'card_type'}
    
    def test_settings_change_tokens_and_sentinel(self):
        settings = ExtractionSettings(chk_token="TXN", currency_token="AED",
                                      unknown="?", card_types=["VISA"])
        extractor = FieldExtractor(settings)
        
        record = extractor.extract("TXN 55 AED 3.25 MASTERCARD")
        
        assert record.chk == "55"
        assert record.amount == Decimal("3.25")
        assert record.card_type == "?"
