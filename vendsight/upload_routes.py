"""CSV upload route.

    POST /api/upload — multipart form with a single ``file`` field

Detection and parse failures are reported with one fixed message per
category (400). Storage failures on individual records do not fail the
request; they are counted in the response. Anything else falls through to
the app-wide handler (500).
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool

from .adapters import (
    InvalidDateError,
    MalformedCsvError,
    UnrecognizedFormatError,
    ingest_csv,
)
from .api_models import UploadResponse
from .config import Settings
from .importer import persist_ingestion
from .sales_store import SalesStore

logger = logging.getLogger("vendsight.upload_routes")

UNKNOWN_FORMAT_MESSAGE = (
    "Unknown CSV format. Please ensure the file matches "
    "iOS Vending Systems or Cantaloupe Systems format."
)
PARSE_FAILED_MESSAGE = (
    "Failed to parse CSV file. Please check the format and ensure "
    "all required columns are present."
)


def create_upload_router(settings: Settings, store: SalesStore) -> APIRouter:
    """Create the upload router bound to a storage backend."""

    router = APIRouter(prefix="/api", tags=["upload"])

    @router.post("/upload", response_model=UploadResponse)
    async def upload_csv(file: UploadFile | None = File(default=None)) -> UploadResponse:
        """Ingest one vendor CSV export and persist its records."""
        if file is None or not file.filename:
            raise HTTPException(status_code=400, detail="No file provided")

        filename = file.filename
        if not filename.lower().endswith(".csv"):
            logger.warning("Rejected non-CSV upload: %s", filename)
            raise HTTPException(status_code=400, detail="File must be a CSV")

        raw = await file.read()
        if len(raw) > settings.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File exceeds the {settings.max_upload_mb} MB upload limit",
            )

        try:
            content = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="File must be UTF-8 text")

        logger.info("Processing upload %s (%d bytes)", filename, len(raw))

        try:
            result = ingest_csv(content, source=filename)
        except UnrecognizedFormatError as e:
            logger.warning("Format detection failed for %s: %s", filename, e)
            raise HTTPException(status_code=400, detail=UNKNOWN_FORMAT_MESSAGE)
        except (MalformedCsvError, InvalidDateError) as e:
            logger.warning("CSV parsing failed for %s: %s", filename, e)
            raise HTTPException(status_code=400, detail=PARSE_FAILED_MESSAGE)

        # Store calls block; keep them off the event loop
        summary = await run_in_threadpool(persist_ingestion, result, store)

        return UploadResponse(
            **summary.model_dump(),
            success=True,
            message=summary.message,
        )

    return router
