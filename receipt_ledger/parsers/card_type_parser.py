"""Card type matching against a fixed vocabulary of payment schemes."""

import re
import logging
from typing import Iterable, List, Optional, Tuple
from .base import BaseParser, ParseResult, ReceiptContext

logger = logging.getLogger(__name__)

DEFAULT_CARD_TYPES = [
    "VISA", "MASTERCARD", "mada", "AMEX", "DEBIT MASTERCARD", "DEBIT VISA", "GCC",
]


class CardTypeMatcher(BaseParser):
    """
    Match the receipt text against known card type labels.
    
    Every label is an alternative of a single pass. Labels are tried longest
    first (ties keep vocabulary order) and the first label found anywhere in
    the text wins, so "DEBIT MASTERCARD" is never shadowed by "MASTERCARD".
    """
    
    def __init__(self, card_types: Optional[Iterable[str]] = None):
        super().__init__()
        labels = list(card_types) if card_types is not None else list(DEFAULT_CARD_TYPES)
        ordered = sorted(enumerate(labels), key=lambda item: (-len(item[1]), item[0]))
        self.alternatives: List[Tuple[str, re.Pattern]] = [
            (label, re.compile(re.escape(label), re.IGNORECASE))
            for _, label in ordered
        ]
    
    @property
    def labels(self) -> List[str]:
        """Vocabulary in matching order."""
        return [label for label, _ in self.alternatives]
    
    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        for label, pattern in self.alternatives:
            match = pattern.search(context.full_text)
            if match:
                result = ParseResult(
                    value=label.upper(),
                    confidence=0.9,
                    source_text=self._line_of(context, match.start()),
                    metadata={'label': label, 'matched': match.group()}
                )
                self._log_result(result, context)
                return result
        
        self._log_result(None, context)
        return None
    
    def match(self, text: str) -> Optional[str]:
        """Return the upper-cased label matching ``text``, or None."""
        result = self.parse(ReceiptContext(full_text=text))
        return result.value if result else None
