"""
Database connection management.

Provides Supabase client singleton for database operations.
"""

from supabase import create_client, Client
from functools import lru_cache
import structlog

from config.settings import settings

logger = structlog.get_logger(__name__)


class DatabaseError(Exception):
    """Base exception for database errors."""
    pass


class ConnectionError(DatabaseError):
    """Failed to connect to database."""
    pass


@lru_cache()
def get_supabase_client() -> Client:
    """
    Get cached Supabase client instance.

    Uses lru_cache to ensure only one client is created.
    Call get_supabase_client.cache_clear() to reconnect.

    Returns:
        Client: Supabase client

    Raises:
        ConnectionError: If the client cannot be created
    """
    try:
        logger.info(
            "connecting_to_supabase",
            url=settings.supabase_url[:30] + "..."  # Log partial URL only
        )

        # Bulk writes need the service role to bypass vendor RLS policies
        client = create_client(
            settings.supabase_url,
            settings.supabase_service_key or settings.supabase_key
        )

        logger.info(
            "supabase_connected",
            status="success",
            service_role=bool(settings.supabase_service_key)
        )

        return client

    except Exception as e:
        logger.error(
            "supabase_connection_failed",
            error=str(e),
            error_type=type(e).__name__
        )
        raise ConnectionError(f"Failed to connect to Supabase: {e}") from e


# Convenience alias
db = get_supabase_client


# ===================
# HELPER FUNCTIONS
# ===================

def check_connection() -> dict:
    """
    Check database connection health.

    Returns:
        dict: Connection status with details
    """
    try:
        client = get_supabase_client()

        products = client.table("products").select("id", count="exact").limit(1).execute()
        vendors = client.table("vendors").select("id", count="exact").limit(1).execute()

        return {
            "status": "healthy",
            "products_count": products.count,
            "vendors_count": vendors.count
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e)
        }


def reset_connection():
    """
    Reset the cached database connection.

    Call this if connection becomes stale or after config changes.
    """
    get_supabase_client.cache_clear()
    logger.info("database_connection_reset")
