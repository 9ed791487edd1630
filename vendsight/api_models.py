"""Request/response models for the VendSight API."""

from __future__ import annotations

from pydantic import BaseModel

from . import __version__


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    code: str
    message: str
    detail: str | None = None


class UploadResponse(BaseModel):
    """Response for POST /api/upload."""

    success: bool = True
    vendor_format: str
    processed_rows: int
    new_locations: int
    new_products: int
    conflicts_resolved: int
    inventory_updates: int
    duplicates_skipped: int = 0
    errors: int
    message: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    status: str = "ok"
    version: str = __version__
    storage: str
    dev_mode: bool = False
