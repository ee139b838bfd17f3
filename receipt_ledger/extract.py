"""Turn recognized receipt text into a candidate ledger record."""

import logging
from typing import Any, Dict, Optional

from .models import Record, ZERO
from .parsers import AmountParser, CardTypeMatcher, ChkParser
from .parsers.base import ReceiptContext
from .settings import ExtractionSettings

logger = logging.getLogger(__name__)


class FieldExtractor:
    """
    Rule-based extractor combining one parser per field.

    Extraction is total: each field is parsed independently and a miss
    resolves to its sentinel ("unknown" for text fields, 0 for the amount).
    """

    def __init__(self, settings: Optional[ExtractionSettings] = None):
        settings = settings or ExtractionSettings()
        self.unknown = settings.unknown
        self.chk_parser = ChkParser(token=settings.chk_token)
        self.amount_parser = AmountParser(currency_token=settings.currency_token)
        self.card_type_matcher = CardTypeMatcher(settings.card_types)

    def extract(self, text: Optional[str]) -> Record:
        """
        Extract a candidate record from recognized text.

        Args:
            text: Raw OCR text; may be empty or garbled

        Returns:
            Record with every field filled, sentinels on misses
        """
        details = self.extract_with_details(text)
        return details['record']

    def extract_with_details(self, text: Optional[str]) -> Dict[str, Any]:
        """Extract a candidate and keep per-field match metadata."""
        context = ReceiptContext(full_text=text or "")

        chk_result = self.chk_parser.parse(context)
        amount_result = self.amount_parser.parse(context)
        card_result = self.card_type_matcher.parse(context)

        record = Record(
            chk=chk_result.value if chk_result else self.unknown,
            card_type=card_result.value if card_result else self.unknown,
            amount=amount_result.value if amount_result else ZERO,
        )

        logger.info(f"Extracted candidate: chk={record.chk}, "
                    f"card_type={record.card_type}, amount={record.display_amount}")

        return {
            'record': record,
            'confidence_scores': {
                'chk': chk_result.confidence if chk_result else 0.0,
                'amount': amount_result.confidence if amount_result else 0.0,
                'card_type': card_result.confidence if card_result else 0.0,
            },
            'source_lines': {
                'chk': chk_result.source_text if chk_result else '',
                'amount': amount_result.source_text if amount_result else '',
                'card_type': card_result.source_text if card_result else '',
            },
        }


def extract_fields(text: Optional[str]) -> Record:
    """Extract a candidate with the default vocabulary and tokens."""
    return FieldExtractor().extract(text)
