"""Ingestion entry point: detect the vendor, then normalize.

Usage:
    from vendsight.adapters import ingest_csv

    result = ingest_csv(text, source="march_sales.csv")
    print(result.summary)

The call is pure. Nothing is written anywhere; the caller hands the
result to a ``SalesStore`` (see ``vendsight.importer``).
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

from .base import IngestionResult
from .detection import detect_vendor
from .normalizer import normalize

logger = logging.getLogger("vendsight.adapters.ingest")


def ingest_csv(content: str, source: str = "<upload>") -> IngestionResult:
    """Detect the vendor format of ``content`` and normalize it.

    Raises:
        UnrecognizedFormatError: Header matches no vendor; nothing is parsed.
        MalformedCsvError: The CSV cannot be tokenized.
        InvalidDateError: A row carries an unparseable date.
    """
    start = time.monotonic()

    schema = detect_vendor(content)
    logger.info("Detected vendor format %s for %s", schema.value, source)

    result = normalize(content, schema)
    elapsed_ms = int((time.monotonic() - start) * 1000)

    return result.model_copy(
        update={"source": source, "processing_time_ms": elapsed_ms}
    )


def ingest_file(path: str | Path) -> IngestionResult:
    """Read a local CSV (UTF-8, optional BOM) and ingest it."""
    path = Path(path)
    content = path.read_text(encoding="utf-8-sig")
    return ingest_csv(content, source=path.name)
