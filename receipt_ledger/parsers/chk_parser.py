"""Transaction identifier (CHK) extraction."""

import re
import logging
from typing import Optional
from .base import BaseParser, ParseResult, ReceiptContext

logger = logging.getLogger(__name__)


class ChkParser(BaseParser):
    """Find the first ``CHK <digits>`` token in the receipt text."""
    
    def __init__(self, token: str = "CHK"):
        super().__init__()
        self.token = token
        # Literal, case-sensitive token followed by whitespace and an ASCII digit run
        self.pattern = re.compile(re.escape(token) + r'\s+([0-9]+)')
    
    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        match = self.pattern.search(context.full_text)
        if not match:
            self._log_result(None, context)
            return None
        
        result = ParseResult(
            value=match.group(1),
            confidence=0.95,
            source_text=self._line_of(context, match.start()),
            metadata={'token': self.token, 'offset': match.start()}
        )
        self._log_result(result, context)
        return result
