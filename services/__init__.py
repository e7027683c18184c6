"""
Business logic services.

Each service handles one domain area.
"""

from services.product_service import ProductService, get_product_service
from services.vendor_service import VendorService, get_vendor_service
from services.category_service import CategoryService, get_category_service
from services.bulk_upload_service import BulkUploadService, get_bulk_upload_service
from services.row_validator import validate_rows
from services.sku_conflict_resolver import classify, build_sku_index

__all__ = [
    "ProductService",
    "get_product_service",
    "VendorService",
    "get_vendor_service",
    "CategoryService",
    "get_category_service",
    "BulkUploadService",
    "get_bulk_upload_service",
    "validate_rows",
    "classify",
    "build_sku_index",
]
