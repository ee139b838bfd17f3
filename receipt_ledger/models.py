"""Data model for ledger records, captured images and engine notices."""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, localcontext
from pathlib import Path
from typing import List, Optional, Union

from .errors import ValidationError

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"
ZERO = Decimal("0")
CENTS = Decimal("0.01")

AmountInput = Union[str, int, float, Decimal, None]


@dataclass(frozen=True)
class Record:
    """A ledger entry, or a candidate freshly produced by the extractor."""
    chk: str
    card_type: str
    amount: Decimal = ZERO

    @property
    def display_amount(self) -> str:
        """Amount with two decimal digits, as shown to the operator."""
        return format_amount(self.amount)


@dataclass(frozen=True)
class CapturedImage:
    """An encoded still image plus its pixel dimensions."""
    data: bytes
    width: int
    height: int
    source: str = "camera"

    @classmethod
    def from_file(cls, path: Path) -> "CapturedImage":
        """Load an image file, reading its dimensions with OpenCV."""
        import cv2
        import numpy as np

        data = Path(path).read_bytes()
        if not data:
            raise ValueError(f"Empty image file: {path}")
        image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if image is None:
            raise ValueError(f"Not a readable image: {path}")
        height, width = image.shape[:2]
        return cls(data=data, width=width, height=height, source=str(path))


@dataclass
class PendingCapture:
    """The single image waiting for OCR, optionally pinned to an existing CHK."""
    image: CapturedImage
    target_chk: Optional[str] = None


@dataclass(frozen=True)
class Notice:
    """User-visible message raised by the engine."""
    level: str
    message: str

    def __str__(self) -> str:
        return f"[{self.level.upper()}] {self.message}"


def quantize_amount(amount: Decimal) -> Decimal:
    """Round to cents, widening the precision so long amounts stay exact."""
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 4)
        return amount.quantize(CENTS)


def format_amount(amount: Decimal) -> str:
    return str(quantize_amount(amount))


def parse_amount(value: AmountInput) -> Optional[Decimal]:
    """Parse an operator-typed amount; None when it is not a non-negative number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount


def validate_manual_entry(chk: Optional[str],
                          card_type: Optional[str],
                          amount: AmountInput) -> Record:
    """
    Validate the three manual-entry fields and build a record from them.

    Args:
        chk: Transaction identifier as typed
        card_type: Card type label as typed
        amount: Amount as typed (string or number)

    Returns:
        Record with stripped text fields and a Decimal amount

    Raises:
        ValidationError: listing every field that failed
    """
    errors: List[str] = []
    chk = (chk or "").strip()
    card_type = (card_type or "").strip()

    if not chk:
        errors.append("CHK is required")
    if not card_type:
        errors.append("Card type is required")

    parsed = None
    if amount is None or (isinstance(amount, str) and not amount.strip()):
        errors.append("Amount is required")
    else:
        parsed = parse_amount(amount)
        if parsed is None:
            errors.append(f"Amount must be a non-negative number, got {amount!r}")

    if errors:
        logger.warning(f"Manual entry rejected: {'; '.join(errors)}")
        raise ValidationError(errors)

    return Record(chk=chk, card_type=card_type, amount=parsed)
