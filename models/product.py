"""
Product schemas for bulk ingestion.

CandidateRow is the raw spreadsheet/JSON row, ValidatedProduct is the
coerced row ready to be written to the products table.
"""

import json
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import Field, field_validator

from models.base import BaseSchema


class ApprovalStatus(str, Enum):
    """Admin moderation state of a product."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProductAction(str, Enum):
    """Terminal outcome of a persisted upload row."""
    CREATED = "created"
    UPDATED = "updated"


# Columns holding pipe-delimited lists ("Black|White|Silver")
LIST_FIELDS = (
    "sizes",
    "colors",
    "tags",
    "box_contents",
    "usage_instructions",
    "care_instructions",
    "safety_notes",
)

DECIMAL_FIELDS = (
    "mrp",
    "sale_price",
    "discount_percentage",
    "weight",
)

DIMENSION_FIELDS = ("length", "width", "height")


class CandidateRow(BaseSchema):
    """
    One uploaded product row, before validation.

    Every field is optional text. Numbers and booleans coming from JSON
    or spreadsheet cells are stringified so the validator sees one shape.
    Unknown columns are ignored.
    """

    # Required by the validator (kept optional here so it can report them)
    name: Optional[str] = None
    price: Optional[str] = None

    # Identity / classification
    sku: Optional[str] = None
    category_name: Optional[str] = None
    subcategory_name: Optional[str] = None
    product_type: Optional[str] = None

    # Descriptive text
    subtitle: Optional[str] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    video_url: Optional[str] = None
    image_urls: Optional[str] = None
    status: Optional[str] = None
    size_chart_override: Optional[str] = None

    # Pricing
    mrp: Optional[str] = None
    sale_price: Optional[str] = None
    discount_percentage: Optional[str] = None
    currency: Optional[str] = None
    base_currency: Optional[str] = None

    # Inventory / shipping
    stock_quantity: Optional[str] = None
    weight: Optional[str] = None
    length: Optional[str] = None
    width: Optional[str] = None
    height: Optional[str] = None

    # Pipe-delimited lists
    sizes: Optional[str] = None
    colors: Optional[str] = None
    tags: Optional[str] = None
    box_contents: Optional[str] = None
    usage_instructions: Optional[str] = None
    care_instructions: Optional[str] = None
    safety_notes: Optional[str] = None

    # Flags
    is_featured: Optional[str] = None
    is_new_arrival: Optional[str] = None
    is_on_sale: Optional[str] = None
    in_stock: Optional[str] = None
    shipping_required: Optional[str] = None
    sizing_required: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def stringify_scalars(cls, v: Any) -> Optional[str]:
        """Spreadsheet cells arrive as int/float/bool; store them as text."""
        if v is None:
            return None
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float, Decimal)):
            return str(v)
        return v


@dataclass
class ValidatedProduct:
    """A candidate row after coercion and defaulting."""

    row_index: int
    vendor_id: str
    name: str
    price: Decimal
    sku: str
    category_id: Optional[str] = None
    subtitle: str = ""
    description: str = ""
    brand: str = ""
    mrp: Optional[Decimal] = None
    sale_price: Optional[Decimal] = None
    discount_percentage: Optional[Decimal] = None
    currency: str = "USD"
    base_currency: str = "USD"
    stock_quantity: int = 0
    weight: Optional[Decimal] = None
    dimensions: Optional[dict[str, float]] = None
    sizes: list[str] = field(default_factory=list)
    colors: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    box_contents: list[str] = field(default_factory=list)
    usage_instructions: list[str] = field(default_factory=list)
    care_instructions: list[str] = field(default_factory=list)
    safety_notes: list[str] = field(default_factory=list)
    video_url: Optional[str] = None
    is_featured: bool = False
    is_new_arrival: bool = True
    is_on_sale: bool = False
    shipping_required: bool = True
    sizing_required: bool = False
    in_stock: bool = False
    product_type: Optional[str] = None
    status: str = "active"
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    size_chart_override: str = "auto"
    approval_status: ApprovalStatus = ApprovalStatus.PENDING
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def to_insert_record(self, sku: Optional[str] = None) -> dict:
        """
        Build the products-table row for an insert.

        Args:
            sku: Final SKU when the conflict resolver renamed it
        """
        return {
            "vendor_id": self.vendor_id,
            "name": self.name,
            "subtitle": self.subtitle,
            "description": self.description,
            "brand": self.brand,
            "sku": sku or self.sku,
            "category_id": self.category_id,
            "price": float(self.price),
            "mrp": _as_float(self.mrp),
            "sale_price": _as_float(self.sale_price),
            "discount_percentage": _as_float(self.discount_percentage),
            "currency": self.currency,
            "base_currency": self.base_currency,
            "stock_quantity": self.stock_quantity,
            "weight": _as_float(self.weight),
            "dimensions": self.dimensions,
            "sizes": self.sizes,
            "colors": self.colors,
            "tags": self.tags,
            "box_contents": self.box_contents,
            "usage_instructions": self.usage_instructions,
            "care_instructions": self.care_instructions,
            "safety_notes": self.safety_notes,
            # Media is attached later from the bulk media step
            "images": json.dumps([]),
            "video_url": self.video_url,
            "is_featured": self.is_featured,
            "is_new_arrival": self.is_new_arrival,
            "is_on_sale": self.is_on_sale,
            "shipping_required": self.shipping_required,
            "sizing_required": self.sizing_required,
            "product_type": self.product_type,
            "status": self.status,
            "meta_title": self.meta_title,
            "meta_description": self.meta_description,
            "size_chart_override": self.size_chart_override,
            "approval_status": self.approval_status.value,
            "in_stock": self.in_stock,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_update_record(self) -> dict:
        """
        Build the payload for overwriting an existing row of the same vendor.

        Ownership and creation time belong to the existing row.
        """
        record = self.to_insert_record()
        record.pop("vendor_id")
        record.pop("created_at")
        return record


def _as_float(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class ExistingProductRef:
    """Minimal projection of a stored product whose SKU is in the upload."""

    id: str
    sku: str
    vendor_id: str
    name: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "ExistingProductRef":
        return cls(
            id=str(row["id"]),
            sku=row["sku"],
            vendor_id=str(row["vendor_id"]),
            name=row.get("name"),
        )


class ProductResult(BaseSchema):
    """A product written by the bulk upload."""

    id: str = Field(..., description="Product UUID")
    name: str = Field(..., description="Product name")
    sku: str = Field(..., description="Stored SKU (after any rename)")
    action: ProductAction = Field(..., description="created or updated")
