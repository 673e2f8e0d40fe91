"""CSV Record Ingestion Adapter.

This adapter implements the IngestionPort contract for delimited dispensing
exports. It turns raw text into PrescriptionRecord objects with safe defaults
for missing or malformed cells, so one bad value never aborts a batch.

Parsing Rules:
    - The first non-empty line is the header; each later non-empty line is a
      record. Blank lines are skipped.
    - Fewer than two non-empty lines raises FormatError.
    - Headers are matched to fields case-sensitively; unknown headers are
      ignored and missing ones leave the field at its default.
    - Cells are trimmed of whitespace and one layer of enclosing quotes.
    - Short rows are padded with empty cells; long rows are truncated to the
      header width.

Architecture:
    - Implements IngestionPort (Hexagonal Architecture)
    - Tokenizing uses pandas read_csv; a line it cannot split cleanly is
      re-tokenized on its own, so a stray quote never crosses a line boundary
    - Cell cleaning and defaulted-cell telemetry run column-wise over the frame
    - Type conversion lives in the PrescriptionRecord validators
    - The whole input is materialized; ingest bounds the file by max_input_bytes
"""

import io
import logging
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from rxtriage.domain.ports import (
    FormatError,
    IngestionPort,
    InputTooLargeError,
    SourceNotFoundError,
)
from rxtriage.domain.prescription_record import PrescriptionRecord, RawField
from rxtriage.domain.utils import clean_cell, parse_finite_float

logger = logging.getLogger(__name__)

DEFAULT_MAX_INPUT_BYTES = 50 * 1024 * 1024

NUMERIC_HEADERS = (
    "Days_Supplied",
    "Dosage_mg",
    "Quantity",
    "Refill_Number",
    "Adherence_Score",
)

TOKENIZER_ERRORS = (pd.errors.ParserError, pd.errors.EmptyDataError)


class CSVIngester(IngestionPort):
    """CSV ingestion adapter with parse-or-default field handling.

    Parameters:
        delimiter: Field delimiter (default ','); '.tsv' sources always use tab
        max_input_bytes: Maximum accepted input size in bytes (default 50 MiB)

    Example Usage:
        ```python
        ingester = CSVIngester()
        records = ingester.ingest("dispensing_export.csv")
        ```
    """

    def __init__(
        self,
        delimiter: str = ',',
        max_input_bytes: int = DEFAULT_MAX_INPUT_BYTES,
    ):
        if max_input_bytes <= 0:
            raise ValueError(f"max_input_bytes must be positive, got {max_input_bytes}")
        self.delimiter = delimiter
        self.max_input_bytes = max_input_bytes
        self.adapter_name = "csv_ingester"

    def can_ingest(self, source: str) -> bool:
        """Check if this adapter can handle the given source.

        Parameters:
            source: Source identifier (file path)

        Returns:
            bool: True if source is a CSV or TSV file, False otherwise
        """
        if not source:
            return False
        return Path(source).suffix.lower() in ('.csv', '.tsv')

    def get_source_info(self, source: str) -> Optional[dict]:
        """Get metadata about the CSV source.

        Returns:
            Optional[dict]: Metadata dictionary or None if unavailable
        """
        try:
            source_path = Path(source)
            if source_path.exists():
                return {
                    'format': 'csv',
                    'size': source_path.stat().st_size,
                    'encoding': 'utf-8',
                    'delimiter': self._delimiter_for(source_path),
                    'max_input_bytes': self.max_input_bytes,
                }
        except (OSError, ValueError):
            pass
        return None

    def ingest(self, source: str) -> List[PrescriptionRecord]:
        """Read a CSV file and parse it into records.

        Parameters:
            source: Path to a CSV or TSV file

        Returns:
            List[PrescriptionRecord]: Records in file order

        Raises:
            SourceNotFoundError: If the file does not exist or cannot be read
            InputTooLargeError: If the file exceeds max_input_bytes
            FormatError: If the file has no data rows
        """
        source_path = Path(source)
        if not source_path.is_file():
            raise SourceNotFoundError(f"CSV source not found: {source}", source=source)

        # Check size before reading the whole file into memory
        file_size = source_path.stat().st_size
        self._check_size(file_size, source)

        try:
            # utf-8-sig drops the BOM spreadsheet exports often carry
            raw_text = source_path.read_text(encoding='utf-8-sig', errors='replace')
        except OSError as e:
            raise SourceNotFoundError(f"Cannot read CSV source {source}: {e}", source=source) from e

        return self.parse(raw_text, source=source, delimiter=self._delimiter_for(source_path))

    def parse(
        self,
        raw_text: str,
        source: str = "<text>",
        delimiter: Optional[str] = None,
    ) -> List[PrescriptionRecord]:
        """Parse delimited text into records.

        The text is not size-checked here; callers bound the raw bytes they
        read (see ingest and the upload route).

        Parameters:
            raw_text: Full text of the export, header first
            source: Label used in log messages and errors
            delimiter: Overrides the instance delimiter

        Returns:
            List[PrescriptionRecord]: One record per non-empty data line, in order

        Raises:
            FormatError: If fewer than two non-empty lines exist
        """
        lines = [line for line in raw_text.splitlines() if line.strip()]
        if len(lines) < 2:
            raise FormatError(
                f"CSV input {source} must contain a header row and at least one data row "
                f"(found {len(lines)} non-empty line{'s' if len(lines) != 1 else ''})",
                source=source,
                line_count=len(lines),
            )

        frame = self._read_frame(lines, delimiter or self.delimiter, source)
        headers = list(frame.columns)

        unknown = [h for h in headers if h not in PrescriptionRecord.csv_headers()]
        if unknown:
            logger.debug(f"Ignoring unrecognized columns in {source}: {unknown}")

        self._log_defaulted_cells(frame, source)

        records = [
            PrescriptionRecord.from_raw_fields(
                RawField(header, value) for header, value in zip(headers, row)
            )
            for row in frame.itertuples(index=False, name=None)
        ]

        logger.info(f"Parsed {len(records)} records from {source}")
        return records

    def _read_frame(self, lines: List[str], delimiter: str, source: str) -> pd.DataFrame:
        """Tokenize lines into a cleaned string DataFrame with header columns.

        The whole batch goes through one read_csv call. If that call fails, or
        a quoted cell swallowed a line break and the row count no longer
        matches the line count, every line is tokenized on its own instead.
        """
        fallback_reason = None
        try:
            rows = self._tokenize('\n'.join(lines), delimiter)
            if len(rows) != len(lines):
                fallback_reason = f"{len(lines)} lines tokenized into {len(rows)} rows"
        except TOKENIZER_ERRORS as e:
            fallback_reason = str(e).strip()

        if fallback_reason:
            logger.warning(
                f"Tokenizing {source} line by line: {fallback_reason}",
                extra={"source": source},
            )
            rows = [self._tokenize_line(line, delimiter) for line in lines]

        headers = [clean_cell(cell) for cell in rows[0]]
        width = len(headers)

        body = [
            (row + [''] * (width - len(row)))[:width]
            for row in rows[1:]
        ]
        frame = pd.DataFrame(body, columns=headers, dtype=str)
        return frame.map(clean_cell)

    def _tokenize(self, text: str, delimiter: str) -> List[List[str]]:
        table = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            header=None,
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
        )
        # Short rows come back padded with NaN
        return table.fillna('').values.tolist()

    def _tokenize_line(self, line: str, delimiter: str) -> List[str]:
        try:
            rows = self._tokenize(line, delimiter)
        except TOKENIZER_ERRORS:
            rows = []
        if len(rows) == 1:
            return rows[0]
        # Unbalanced quotes: split on the delimiter and let clean_cell trim
        return line.split(delimiter)

    def _log_defaulted_cells(self, frame: pd.DataFrame, source: str) -> None:
        """Log non-blank numeric cells that will fall back to a default.

        Records are not marked; the counts only reach the log.
        """
        headers = list(frame.columns)
        defaulted: Dict[str, int] = {}

        for header in NUMERIC_HEADERS:
            if header not in headers:
                continue
            column = frame.iloc[:, headers.index(header)]
            failed = column.ne('') & column.map(parse_finite_float).isna()
            count = int(failed.sum())
            if count:
                defaulted[header] = count

        if defaulted:
            logger.warning(
                f"Defaulted {sum(defaulted.values())} malformed numeric cells in {source}: {defaulted}",
                extra={"source": source, "extra_fields": {"defaulted_cells": defaulted}},
            )

    def _check_size(self, size: int, source: str) -> None:
        if size > self.max_input_bytes:
            raise InputTooLargeError(
                f"Input {source} is {size} bytes, above the {self.max_input_bytes} byte limit",
                size=size,
                limit=self.max_input_bytes,
                source=source,
            )

    def _delimiter_for(self, source_path: Path) -> str:
        return '\t' if source_path.suffix.lower() == '.tsv' else self.delimiter
