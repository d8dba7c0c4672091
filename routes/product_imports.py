"""
Product import routes.

Upload a vendor spreadsheet, get back product drafts for review.
"""

from fastapi import APIRouter, UploadFile, File
from fastapi.responses import JSONResponse
import structlog

from config import settings
from models.product_import import ImportPreviewResponse, ImportReport
from services import preview_cache_service
from services.product_import_service import get_product_import_service
from exceptions import (
    AppError,
    PreviewNotFoundError,
    UploadTooLargeError,
)

logger = structlog.get_logger(__name__)

router = APIRouter()


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to JSON response."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content=e.to_dict()
        )
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "An unexpected error occurred"
            }
        }
    )


# ===================
# UPLOAD ROUTES
# ===================

@router.post("/preview", response_model=ImportPreviewResponse)
async def preview_import(file: UploadFile = File(...)):
    """
    Import a spreadsheet as product drafts.

    Nothing is written to the catalog. The report is kept for
    settings.preview_ttl_minutes so the admin page can review it.

    Returns:
        ImportPreviewResponse with preview_id and the import report
    """
    try:
        contents = await file.read()
        if len(contents) > settings.max_upload_bytes:
            raise UploadTooLargeError(len(contents), settings.max_upload_bytes)

        file_name = file.filename or "upload.xlsx"
        report = await get_product_import_service().import_products(contents, file_name)
        preview_id = preview_cache_service.store_preview(report)

        logger.info(
            "product_import_preview_stored",
            preview_id=preview_id,
            drafts=len(report.drafts),
            errors=report.stats.errors
        )

        return ImportPreviewResponse(preview_id=preview_id, report=report)

    except AppError as e:
        return handle_error(e)
    except Exception as e:
        logger.error("product_import_upload_failed", error=str(e))
        return handle_error(e)


# ===================
# PREVIEW ROUTES
# ===================

@router.get("/previews/{preview_id}", response_model=ImportReport)
async def get_preview(preview_id: str):
    """Get a stored import report."""
    try:
        report = preview_cache_service.retrieve_preview(preview_id)
        if report is None:
            raise PreviewNotFoundError(preview_id)
        return report
    except Exception as e:
        return handle_error(e)


@router.delete("/previews/{preview_id}", status_code=204)
async def discard_preview(preview_id: str):
    """Discard an import report after review."""
    try:
        if not preview_cache_service.delete_preview(preview_id):
            raise PreviewNotFoundError(preview_id)
        return None
    except Exception as e:
        return handle_error(e)
