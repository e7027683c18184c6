"""
Vendor schemas.
"""

from typing import Optional

from pydantic import Field

from models.base import BaseSchema


class VendorStatus(BaseSchema):
    """Standing of the vendor running an upload."""

    id: str = Field(..., description="Vendor UUID")
    status: Optional[str] = Field(None, description="Onboarding status, e.g. approved")
    is_active: Optional[bool] = Field(None, description="Whether the storefront is live")
