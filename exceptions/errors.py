"""
Custom exception classes for the application.
"""

from typing import Optional, Any
from datetime import datetime


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "VENDOR_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.utcnow().isoformat()
        super().__init__(message)


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422 unless the caller picks another status)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None,
        status_code: int = 422
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=status_code,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.operation = operation
        self.reason = message
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )

    @property
    def is_unique_violation(self) -> bool:
        """True when PostgreSQL rejected the write on a unique constraint."""
        return self.details.get("pg_code") == "23505"


# ===================
# VENDOR ERRORS
# ===================

class VendorNotFoundError(NotFoundError):
    """Vendor not found."""

    def __init__(self, vendor_id: str):
        super().__init__(
            resource="Vendor",
            identifier=vendor_id,
            code="VENDOR_NOT_FOUND"
        )


# ===================
# BULK UPLOAD ERRORS
# ===================

class BulkUploadInputError(ValidationError):
    """Request is missing the vendor or the product list."""

    def __init__(self, message: str):
        super().__init__(
            code="BULK_UPLOAD_INVALID_INPUT",
            message=message,
            status_code=400
        )


class BulkUploadValidationError(ValidationError):
    """One or more rows failed validation; nothing was written."""

    def __init__(self, errors: list[str], total_count: int):
        self.errors = errors
        super().__init__(
            code="BULK_UPLOAD_VALIDATION_FAILED",
            message="Validation errors found",
            status_code=400,
            details={
                "errors": errors,
                "processedCount": 0,
                "totalCount": total_count
            }
        )


class CollaboratorLookupError(AppError):
    """A read the upload depends on (vendor, categories, existing SKUs) failed."""

    def __init__(self, code: str, message: str, reason: str):
        super().__init__(
            code=code,
            message=message,
            status_code=500,
            details={"message": reason}
        )


class VendorLookupError(CollaboratorLookupError):
    """Vendor status could not be read."""

    def __init__(self, reason: str):
        super().__init__(
            code="VENDOR_LOOKUP_FAILED",
            message="Failed to verify vendor status",
            reason=reason
        )


class CategoryLookupError(CollaboratorLookupError):
    """Category table could not be read."""

    def __init__(self, reason: str):
        super().__init__(
            code="CATEGORY_LOOKUP_FAILED",
            message="Failed to fetch categories",
            reason=reason
        )


class ExistingSKULookupError(CollaboratorLookupError):
    """Existing products for the uploaded SKUs could not be read."""

    def __init__(self, reason: str):
        super().__init__(
            code="SKU_LOOKUP_FAILED",
            message="Failed to look up existing SKUs",
            reason=reason
        )


class BulkOperationFailedError(AppError):
    """Not a single row was created or updated."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(
            code="BULK_OPERATION_FAILED",
            message="Bulk operation failed",
            status_code=500,
            details={
                "message": "; ".join(errors),
                "details": errors
            }
        )


# ===================
# PRODUCT SHEET ERRORS
# ===================

class ProductSheetParseError(ValidationError):
    """Uploaded CSV/XLSX file could not be turned into product rows."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="PRODUCT_SHEET_PARSE_ERROR",
            message=message,
            status_code=400,
            details=details
        )
