"""Ingestion errors.

All three abort the whole upload before anything is written. Numeric
parse failures on price/total are not errors.
"""

from __future__ import annotations


class IngestError(ValueError):
    """Base class for failures that reject an entire CSV file."""


class UnrecognizedFormatError(IngestError):
    """Header line matches neither supported vendor format."""


class MalformedCsvError(IngestError):
    """CSV cannot be tokenized or lacks required columns."""


class InvalidDateError(IngestError):
    """A row's date cell cannot be parsed into an instant."""

    def __init__(self, value: str, row_number: int | None = None):
        self.value = value
        self.row_number = row_number
        where = f" on line {row_number}" if row_number is not None else ""
        super().__init__(f"Unparseable date {value!r}{where}")
