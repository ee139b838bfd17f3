"""Receipt Ledger - Reconcile scanned payment receipts into a CHK-keyed ledger."""

__version__ = "1.0.0"
__author__ = "Receipt Ledger Team"
__email__ = ""

from .models import Record, CapturedImage, Notice, UNKNOWN
from .ledger import Ledger
from .extract import FieldExtractor, extract_fields
from .parsers import CardTypeMatcher
from .engine import ReconciliationEngine, EngineState
from .export import LedgerExporter
from .settings import Settings, load_settings

__all__ = [
    'Record',
    'CapturedImage',
    'Notice',
    'UNKNOWN',
    'Ledger',
    'FieldExtractor',
    'extract_fields',
    'CardTypeMatcher',
    'ReconciliationEngine',
    'EngineState',
    'LedgerExporter',
    'Settings',
    'load_settings',
]
