"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    DatabaseError,

    # Vendor
    VendorNotFoundError,

    # Bulk upload
    BulkUploadInputError,
    BulkUploadValidationError,
    CollaboratorLookupError,
    VendorLookupError,
    CategoryLookupError,
    ExistingSKULookupError,
    BulkOperationFailedError,

    # Product sheet parser
    ProductSheetParseError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",

    # Vendor
    "VendorNotFoundError",

    # Bulk upload
    "BulkUploadInputError",
    "BulkUploadValidationError",
    "CollaboratorLookupError",
    "VendorLookupError",
    "CategoryLookupError",
    "ExistingSKULookupError",
    "BulkOperationFailedError",

    # Product sheet parser
    "ProductSheetParseError",
]
