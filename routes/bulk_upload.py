"""
Bulk product upload API routes.

Errors on these routes use the dashboard's upload envelope,
{"success": false, "error": <message>, ...details}, rather than the
nested error format of the other routers.
"""

from io import BytesIO
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse, Response
import structlog

from models.bulk_upload import BulkUploadRequest, BulkUploadResponse
from parsers.product_sheet_parser import parse_product_sheet, generate_template
from services.bulk_upload_service import get_bulk_upload_service
from exceptions import AppError

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/products/bulk-upload", tags=["Bulk Upload"])


# ===================
# EXCEPTION HANDLER
# ===================

def handle_error(e: Exception) -> JSONResponse:
    """Convert exception to the upload error envelope."""
    if isinstance(e, AppError):
        return JSONResponse(
            status_code=e.status_code,
            content={"success": False, "error": e.message, **e.details}
        )
    # Unexpected error
    logger.error("unexpected_error", error=str(e), type=type(e).__name__)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "message": str(e)
        }
    )


# ===================
# ROUTES
# ===================

@router.get("")
async def bulk_upload_info():
    """Report that the bulk upload API is available."""
    return {
        "success": True,
        "message": "Bulk upload API is available",
        "endpoints": {
            "POST": "Upload products as parsed CSV rows (JSON)",
            "POST /file": "Upload a .csv or .xlsx product sheet",
            "GET /template": "Download the CSV template"
        }
    }


@router.post("", response_model=BulkUploadResponse)
async def bulk_upload(data: BulkUploadRequest):
    """
    Create or update a vendor's products from parsed sheet rows.

    Same vendor + same SKU updates the existing product. A SKU owned by
    another vendor is renamed before insert. Every new product starts
    with approval_status "pending".

    Raises:
        400: Missing vendor/products, or any row failed validation
        404: Vendor not found
        500: Lookup failed, or no row could be written
    """
    try:
        service = get_bulk_upload_service()
        return service.upload(data.vendor_id, data.products)

    except Exception as e:
        return handle_error(e)


@router.post("/file", response_model=BulkUploadResponse)
async def bulk_upload_file(
    file: UploadFile = File(...),
    vendor_id: Optional[str] = Form(None, alias="vendorId"),
):
    """
    Upload a product sheet file (.csv or .xlsx).

    The sheet is parsed server-side and then goes through the same
    pipeline as the JSON upload.

    Raises:
        400: Unreadable sheet, missing name/price columns, invalid rows
        404: Vendor not found
        500: Lookup failed, or no row could be written
    """
    logger.info(
        "bulk_upload_file_received",
        filename=file.filename,
        content_type=file.content_type,
        vendor_id=vendor_id
    )

    try:
        content = await file.read()
        parsed = parse_product_sheet(BytesIO(content), file.filename or "")

        service = get_bulk_upload_service()
        return service.upload(vendor_id, parsed.rows)

    except Exception as e:
        return handle_error(e)


@router.get("/template")
async def download_template():
    """Download the product upload CSV template."""
    return Response(
        content=generate_template(),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="product-upload-template.csv"'}
    )
