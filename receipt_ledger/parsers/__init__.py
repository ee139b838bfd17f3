"""Receipt field parsers - one small parser per extracted field."""

from .chk_parser import ChkParser
from .amount_parser import AmountParser
from .card_type_parser import CardTypeMatcher, DEFAULT_CARD_TYPES

__all__ = ['ChkParser', 'AmountParser', 'CardTypeMatcher', 'DEFAULT_CARD_TYPES']
