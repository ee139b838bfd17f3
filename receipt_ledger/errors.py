"""Exception types raised by the ledger, its collaborators and the engine."""

from typing import List, Optional


class LedgerError(Exception):
    """Base class for all receipt ledger errors."""


class ValidationError(LedgerError):
    """Manual entry rejected before touching the ledger."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class OCRError(LedgerError):
    """Text recognition failed or timed out."""


class CaptureError(LedgerError):
    """No camera could be opened or a frame could not be grabbed."""


class EngineBusyError(LedgerError):
    """A receipt is still being processed."""


class EmptyLedgerError(LedgerError):
    """Export requested while the ledger holds no records."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "Nothing to export: the ledger is empty")
