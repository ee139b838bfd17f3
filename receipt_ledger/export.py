"""Excel and CSV export of a ledger snapshot."""

import logging
from typing import List, Sequence, Dict, Any
from pathlib import Path
import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment

from .errors import EmptyLedgerError
from .models import Record, ZERO, quantize_amount
from .settings import ExportSettings

logger = logging.getLogger(__name__)

HEADERS = ["CHK", "Card Type", "Amount"]
AMOUNT_FORMAT = "0.00"


def records_to_rows(records: Sequence[Record]) -> List[Dict[str, Any]]:
    """Flatten records into rows keyed by the export column headers."""
    return [
        {'CHK': r.chk, 'Card Type': r.card_type, 'Amount': quantize_amount(r.amount)}
        for r in records
    ]


class LedgerExporter:
    """Export ledger records to an Excel workbook or a CSV file."""

    def __init__(self, output_path: Path, settings: ExportSettings = None):
        """
        Initialize ledger exporter.

        Args:
            output_path: Path for the output file; the suffix picks the format
            settings: Sheet title and summary options
        """
        self.output_path = Path(output_path)
        self.settings = settings or ExportSettings()

    def export(self, records: Sequence[Record], include_summary: bool = None) -> Path:
        """
        Write the records to ``output_path``.

        Args:
            records: Ordered ledger snapshot
            include_summary: Append a total row (Excel only); defaults to settings

        Returns:
            Path of the written file

        Raises:
            EmptyLedgerError: when there is nothing to export; no file is written
        """
        if not records:
            raise EmptyLedgerError()

        errors = self.validate_records(records)
        if errors:
            raise ValueError("; ".join(errors))

        if include_summary is None:
            include_summary = self.settings.include_summary

        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            suffix = self.output_path.suffix.lower()
            if suffix == '.csv':
                self._write_csv(records)
            elif suffix in ('.xlsx', '.xlsm'):
                self._write_excel(records, include_summary)
            else:
                raise ValueError(f"Unsupported export format: {self.output_path.suffix or '(none)'}")

            logger.info(f"Exported {len(records)} records to: {self.output_path}")
            return self.output_path

        except Exception as e:
            logger.error(f"Failed to export ledger: {e}")
            raise

    def _write_csv(self, records: Sequence[Record]):
        df = pd.DataFrame(records_to_rows(records), columns=HEADERS)
        df.to_csv(self.output_path, index=False, encoding='utf-8-sig')

    def _write_excel(self, records: Sequence[Record], include_summary: bool):
        workbook = Workbook()
        ws = workbook.active
        ws.title = self.settings.sheet_title

        # Add headers
        for col, header in enumerate(HEADERS, 1):
            cell = ws.cell(row=1, column=col, value=header)
            cell.font = Font(bold=True)
            cell.fill = PatternFill(start_color="E6E6E6", end_color="E6E6E6", fill_type="solid")
            cell.alignment = Alignment(horizontal="center")

        current_row = 2
        for row in records_to_rows(records):
            ws.cell(row=current_row, column=1, value=row['CHK'])
            ws.cell(row=current_row, column=2, value=row['Card Type'])
            amount_cell = ws.cell(row=current_row, column=3, value=row['Amount'])
            amount_cell.number_format = AMOUNT_FORMAT
            current_row += 1

        if include_summary:
            self._add_summary_row(ws, records, current_row + 1)

        for column_letter, width in zip("ABC", [15, 40, 14]):
            ws.column_dimensions[column_letter].width = width

        workbook.save(str(self.output_path))

    def _add_summary_row(self, ws, records: Sequence[Record], row: int):
        """Add the record count and total amount under the table."""
        ws.cell(row=row, column=1, value="Total").font = Font(bold=True)
        ws.cell(row=row, column=2, value=f"{len(records)} transactions")
        total_cell = ws.cell(row=row, column=3, value=quantize_amount(sum((r.amount for r in records), ZERO)))
        total_cell.font = Font(bold=True)
        total_cell.number_format = AMOUNT_FORMAT

    @staticmethod
    def validate_records(records: Sequence[Record]) -> List[str]:
        """
        Validate records before export.

        Args:
            records: Ledger snapshot

        Returns:
            List of validation error messages
        """
        errors = []
        for i, record in enumerate(records):
            if not record.chk:
                errors.append(f"Record {i+1}: Missing 'CHK'")
            if not record.card_type:
                errors.append(f"Record {i+1}: Missing 'Card Type'")
            if record.amount is None or record.amount < 0:
                errors.append(f"Record {i+1}: Amount must be a non-negative number")

        return errors
