"""
Category lookups for bulk uploads.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.category import CategoryLookup, CategoryResponse
from exceptions import DatabaseError

logger = structlog.get_logger(__name__)


class CategoryService:
    """Read-only access to the categories table."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "categories"

    def get_lookup(self) -> CategoryLookup:
        """
        Snapshot every category as a case-insensitive name -> id lookup.

        Raises:
            DatabaseError: If the query fails
        """
        try:
            result = (
                self.db.table(self.table)
                .select("id, name")
                .execute()
            )
        except Exception as e:
            logger.error("get_categories_failed", error=str(e))
            raise DatabaseError("select", str(e))

        categories = [
            CategoryResponse(id=str(row["id"]), name=row["name"])
            for row in result.data
            if row.get("name")
        ]
        lookup = CategoryLookup.from_categories(categories)

        logger.debug("categories_loaded", count=len(lookup))
        return lookup


# Singleton instance for convenience
_category_service: Optional[CategoryService] = None

def get_category_service() -> CategoryService:
    """Get or create CategoryService instance."""
    global _category_service
    if _category_service is None:
        _category_service = CategoryService()
    return _category_service
