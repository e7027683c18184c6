"""
Vendor lookups needed before a bulk upload.
"""

from typing import Optional
import structlog

from config import get_supabase_client
from models.vendor import VendorStatus
from exceptions import VendorNotFoundError, DatabaseError

logger = structlog.get_logger(__name__)


class VendorService:
    """Read-only access to the vendors table."""

    def __init__(self):
        self.db = get_supabase_client()
        self.table = "vendors"

    def get_status(self, vendor_id: str) -> VendorStatus:
        """
        Get a vendor's onboarding status and active flag.

        Args:
            vendor_id: Vendor UUID

        Returns:
            VendorStatus

        Raises:
            VendorNotFoundError: If vendor doesn't exist
            DatabaseError: If the query fails
        """
        logger.debug("getting_vendor_status", vendor_id=vendor_id)

        try:
            result = (
                self.db.table(self.table)
                .select("id, status, is_active")
                .eq("id", vendor_id)
                .execute()
            )
        except Exception as e:
            logger.error(
                "get_vendor_status_failed",
                vendor_id=vendor_id,
                error=str(e)
            )
            raise DatabaseError("select", str(e))

        if not result.data:
            raise VendorNotFoundError(vendor_id)

        return VendorStatus(**result.data[0])


# Singleton instance for convenience
_vendor_service: Optional[VendorService] = None

def get_vendor_service() -> VendorService:
    """Get or create VendorService instance."""
    global _vendor_service
    if _vendor_service is None:
        _vendor_service = VendorService()
    return _vendor_service
