"""Immutable ledger of reconciled records keyed by CHK."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterator, Optional, Tuple

from .models import Record, ZERO

logger = logging.getLogger(__name__)

CARD_TYPE_SEPARATOR = ", "


@dataclass(frozen=True)
class Ledger:
    """
    Ordered records with at most one entry per CHK.

    Every operation returns a new Ledger; the receiver is never modified.
    The "unknown" CHK is an ordinary key, so failed extractions share one entry.
    """
    records: Tuple[Record, ...] = ()

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self.records)

    def __getitem__(self, index: int) -> Record:
        return self.records[index]

    @property
    def total(self) -> Decimal:
        return sum((record.amount for record in self.records), ZERO)

    def index_of(self, chk: str) -> Optional[int]:
        """Position of the entry keyed by ``chk``, or None."""
        for index, record in enumerate(self.records):
            if record.chk == chk:
                return index
        return None

    def get(self, chk: str) -> Optional[Record]:
        index = self.index_of(chk)
        return self.records[index] if index is not None else None

    def merge_automatic(self, candidate: Record, target_chk: Optional[str] = None) -> "Ledger":
        """
        Merge an extracted candidate into the ledger.

        Args:
            candidate: Record produced by the extractor
            target_chk: Existing CHK to attribute the scan to, overriding the
                extracted one

        Returns:
            New ledger; an existing entry gets the amount added and the card
            type appended, otherwise the candidate is appended at the end
        """
        key = target_chk if target_chk is not None else candidate.chk
        return self._merge(Record(chk=key, card_type=candidate.card_type, amount=candidate.amount))

    def merge_manual(self, record: Record) -> "Ledger":
        """Merge an operator-typed record, keyed by its own CHK."""
        return self._merge(record)

    def replace_at(self, index: int, record: Record) -> "Ledger":
        """Overwrite the entry at ``index`` verbatim, without any summing."""
        if not 0 <= index < len(self.records):
            raise IndexError(f"No ledger entry at position {index} (ledger has {len(self.records)})")

        existing = self.index_of(record.chk)
        if existing is not None and existing != index:
            raise ValueError(f"CHK {record.chk} already exists at position {existing}")

        records = list(self.records)
        records[index] = record
        logger.info(f"Replaced entry {index}: {self.records[index].chk} -> {record.chk}")
        return Ledger(tuple(records))

    def cleared(self) -> "Ledger":
        return Ledger()

    def _merge(self, record: Record) -> "Ledger":
        index = self.index_of(record.chk)
        if index is None:
            logger.info(f"New ledger entry {record.chk}: {record.card_type} {record.display_amount}")
            return Ledger(self.records + (record,))

        existing = self.records[index]
        merged = Record(
            chk=record.chk,
            card_type=existing.card_type + CARD_TYPE_SEPARATOR + record.card_type,
            amount=existing.amount + record.amount,
        )
        logger.info(f"Merged into {record.chk}: {merged.card_type} {merged.display_amount}")
        records = list(self.records)
        records[index] = merged
        return Ledger(tuple(records))
