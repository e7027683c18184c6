"""
Product store operations used by the bulk upload.

Thin layer over the Supabase products table: existing-SKU lookups,
one multi-row insert, and single-row updates by id.
"""

from typing import Optional
import structlog

from config import get_supabase_client, settings
from models.product import ExistingProductRef
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)

EXISTING_REF_COLUMNS = "id, sku, vendor_id, name"


def _database_error(operation: str, e: Exception) -> DatabaseError:
    """Wrap a client error, keeping the PostgreSQL error code if there is one."""
    pg_code = getattr(e, "code", None)
    message = getattr(e, "message", None) or str(e)
    return DatabaseError(
        operation,
        message,
        details={"pg_code": pg_code} if pg_code else None
    )


class ProductService:
    """
    Product persistence for bulk ingestion.

    Every method raises DatabaseError on failure; the caller decides
    whether that is fatal or a per-row error.
    """

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "products"

    # ===================
    # READ OPERATIONS
    # ===================

    def get_existing_by_skus(
        self,
        skus: list[str],
        vendor_id: Optional[str] = None
    ) -> list[ExistingProductRef]:
        """
        Get stored products whose SKU is in the list.

        Args:
            skus: SKUs from the upload (duplicates are ignored)
            vendor_id: Only return this vendor's products

        Returns:
            List of ExistingProductRef (any order)
        """
        unique_skus = list(dict.fromkeys(skus))
        if not unique_skus:
            return []

        chunk_size = settings.sku_lookup_chunk_size

        logger.debug(
            "getting_existing_skus",
            count=len(unique_skus),
            vendor_id=vendor_id,
            chunks=(len(unique_skus) + chunk_size - 1) // chunk_size
        )

        refs: list[ExistingProductRef] = []
        try:
            for start in range(0, len(unique_skus), chunk_size):
                query = (
                    self.db.table(self.table)
                    .select(EXISTING_REF_COLUMNS)
                    .in_("sku", unique_skus[start:start + chunk_size])
                )
                if vendor_id:
                    query = query.eq("vendor_id", vendor_id)
                result = query.execute()
                refs.extend(ExistingProductRef.from_row(row) for row in result.data)

        except Exception as e:
            logger.error(
                "get_existing_skus_failed",
                count=len(unique_skus),
                vendor_id=vendor_id,
                error=str(e)
            )
            raise _database_error("select", e)

        logger.debug("existing_skus_retrieved", found=len(refs), vendor_id=vendor_id)
        return refs

    # ===================
    # WRITE OPERATIONS
    # ===================

    def bulk_create(self, records: list[dict]) -> list[dict]:
        """
        Insert all records in one request.

        PostgREST runs a multi-row insert as a single statement, so either
        every row is stored or none is.

        Args:
            records: Products-table rows

        Returns:
            Inserted rows as returned by the database

        Raises:
            DatabaseError: If the insert fails (details.pg_code is set for
                constraint violations)
        """
        if not records:
            return []

        logger.info("bulk_creating_products", count=len(records))

        try:
            result = (
                self.db.table(self.table)
                .insert(records)
                .execute()
            )
        except Exception as e:
            logger.error(
                "bulk_create_products_failed",
                count=len(records),
                error=str(e),
                pg_code=getattr(e, "code", None)
            )
            raise _database_error("insert", e)

        logger.info("products_bulk_created", count=len(result.data))
        return result.data

    def update(self, product_id: str, record: dict) -> Optional[dict]:
        """
        Overwrite one product by id.

        Args:
            product_id: Product UUID
            record: Columns to overwrite

        Returns:
            Updated row, or None if no row has that id
        """
        logger.debug("updating_product", product_id=product_id)

        try:
            result = (
                self.db.table(self.table)
                .update(record)
                .eq("id", product_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "update_product_failed",
                product_id=product_id,
                error=str(e)
            )
            raise _database_error("update", e)

        if not result.data:
            return None

        logger.debug("product_updated", product_id=product_id, fields=len(record))
        return result.data[0]


# Singleton instance for convenience
_product_service: Optional[ProductService] = None

def get_product_service() -> ProductService:
    """Get or create ProductService instance."""
    global _product_service
    if _product_service is None:
        _product_service = ProductService()
    return _product_service
