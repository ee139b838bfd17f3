"""Base classes for receipt field parsers."""

from abc import ABC, abstractmethod
from typing import Optional, Any, Dict, List
from dataclasses import dataclass
import logging

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    """Result of a parsing operation with confidence and metadata."""
    value: Any
    confidence: float
    source_text: str = ""
    metadata: Optional[Dict[str, Any]] = None
    
    def __post_init__(self):
        if self.metadata is None:
            self.metadata = {}


@dataclass
class ReceiptContext:
    """Recognized receipt text shared by all field parsers."""
    full_text: str
    lines: Optional[List[str]] = None
    
    def __post_init__(self):
        if self.full_text is None:
            self.full_text = ""
        if self.lines is None:
            self.lines = self.full_text.split('\n') if self.full_text else []


class BaseParser(ABC):
    """Base class for all receipt field parsers."""
    
    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)
    
    @abstractmethod
    def parse(self, context: ReceiptContext) -> Optional[ParseResult]:
        """
        Parse the specific field from receipt context.
        
        Args:
            context: Receipt context with recognized text
            
        Returns:
            ParseResult with value and confidence, or None if no match
        """
        pass
    
    def _log_result(self, result: Optional[ParseResult], context: ReceiptContext):
        """Log parsing result for debugging."""
        if result:
            self.logger.debug(f"Parsed: {result.value} (confidence: {result.confidence:.2f})")
        else:
            self.logger.debug("Parsing failed - no match")
    
    def _line_of(self, context: ReceiptContext, position: int) -> str:
        """Return the text line containing a character offset of the full text."""
        start = context.full_text.rfind('\n', 0, position) + 1
        end = context.full_text.find('\n', position)
        if end == -1:
            end = len(context.full_text)
        return context.full_text[start:end].strip()
