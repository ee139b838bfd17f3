"""Amount extraction for receipts printed in a single fixed currency."""

import re
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional
from .base import BaseParser, ParseResult, ReceiptContext

logger = logging.getLogger(__name__)


class AmountParser(BaseParser):
    """Find the first ``SAR <number>`` amount in the receipt text."""
    
    def __init__(self, currency_token: str = "SAR"):
        super().__init__()
        self.currency_token = currency_token
        self.pattern = re.compile(re.escape(currency_token) + r'\s+([0-9]+(?:\.[0-9]+)?)')
    
    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        """
        Extract the amount following the currency token.
        
        Args:
            context: Receipt context with full text
            
        Returns:
            ParseResult with a Decimal amount, or None when no amount is printed
        """
        match = self.pattern.search(context.full_text)
        if not match:
            self._log_result(None, context)
            return None
        
        try:
            amount = Decimal(match.group(1))
        except InvalidOperation:
            self.logger.warning(f"Unparseable amount: {match.group(1)!r}")
            return None
        
        result = ParseResult(
            value=amount,
            confidence=0.9,
            source_text=self._line_of(context, match.start()),
            metadata={'currency': self.currency_token, 'raw': match.group(1)}
        )
        self._log_result(result, context)
        return result
