"""
Pydantic models and pipeline dataclasses.
"""

from models.base import BaseSchema, CamelSchema
from models.product import (
    ApprovalStatus,
    ProductAction,
    CandidateRow,
    ValidatedProduct,
    ExistingProductRef,
    ProductResult,
)
from models.category import CategoryResponse, CategoryLookup
from models.vendor import VendorStatus
from models.bulk_upload import (
    HEADER_ROW_OFFSET,
    RowError,
    RowValidationResult,
    ConflictResolution,
    ClassifiedRow,
    ClassifiedBatch,
    PersistenceReport,
    BulkUploadRequest,
    BulkUploadSummary,
    BulkUploadData,
    BulkUploadResponse,
)

__all__ = [
    # Base
    "BaseSchema",
    "CamelSchema",

    # Product
    "ApprovalStatus",
    "ProductAction",
    "CandidateRow",
    "ValidatedProduct",
    "ExistingProductRef",
    "ProductResult",

    # Category
    "CategoryResponse",
    "CategoryLookup",

    # Vendor
    "VendorStatus",

    # Bulk upload
    "HEADER_ROW_OFFSET",
    "RowError",
    "RowValidationResult",
    "ConflictResolution",
    "ClassifiedRow",
    "ClassifiedBatch",
    "PersistenceReport",
    "BulkUploadRequest",
    "BulkUploadSummary",
    "BulkUploadData",
    "BulkUploadResponse",
]
