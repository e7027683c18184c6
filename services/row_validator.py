"""
Row validator for bulk product uploads.

Coerces raw CandidateRows into ValidatedProducts. Never touches storage:
the category table arrives as a pre-fetched CategoryLookup.

Validation collects every failing row (one error per row, first failure
wins). Callers must treat a non-empty error list as a rejection of the
whole upload.
"""

import math
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
import structlog

from models.bulk_upload import HEADER_ROW_OFFSET, RowError, RowValidationResult
from models.category import CategoryLookup
from models.product import (
    ApprovalStatus,
    CandidateRow,
    ValidatedProduct,
    LIST_FIELDS,
    DECIMAL_FIELDS,
    DIMENSION_FIELDS,
)

logger = structlog.get_logger(__name__)

TRUE_TOKENS = frozenset({"true", "1", "yes"})


def validate_rows(
    rows: list[CandidateRow],
    categories: CategoryLookup,
    vendor_id: str,
    approval_status: ApprovalStatus = ApprovalStatus.PENDING,
    now: Optional[datetime] = None,
    default_currency: str = "USD",
) -> RowValidationResult:
    """
    Validate and coerce every uploaded row.

    Args:
        rows: Raw rows in upload order
        categories: Category name -> id snapshot
        vendor_id: Uploading vendor, stamped on every product
        approval_status: Moderation state for new products
        now: Clock for timestamps and placeholder SKUs (defaults to UTC now)
        default_currency: Currency when a row names none

    Returns:
        RowValidationResult with the valid products and one error per bad row
    """
    now = now or datetime.now(timezone.utc)
    timestamp = now.isoformat()
    epoch_ms = int(now.timestamp() * 1000)

    logger.info("validating_rows", vendor_id=vendor_id, row_count=len(rows))

    result = RowValidationResult()

    for index, row in enumerate(rows):
        outcome = _validate_row(
            row,
            index=index,
            categories=categories,
            vendor_id=vendor_id,
            approval_status=approval_status,
            timestamp=timestamp,
            epoch_ms=epoch_ms,
            default_currency=default_currency,
        )
        if isinstance(outcome, RowError):
            logger.debug(
                "row_rejected",
                row=outcome.row_number,
                field=outcome.field,
                error=outcome.message
            )
            result.errors.append(outcome)
        else:
            result.products.append(outcome)

    logger.info(
        "rows_validated",
        vendor_id=vendor_id,
        valid_count=len(result.products),
        error_count=len(result.errors),
        success=result.success
    )

    return result


def _validate_row(
    row: CandidateRow,
    index: int,
    categories: CategoryLookup,
    vendor_id: str,
    approval_status: ApprovalStatus,
    timestamp: str,
    epoch_ms: int,
    default_currency: str,
) -> Union[ValidatedProduct, RowError]:
    """Validate one row. Returns the product, or the first error found."""
    row_number = index + HEADER_ROW_OFFSET

    name = _text(row.name)
    if not name:
        return RowError(row_number, "name", "Product name is required")

    try:
        price = _parse_decimal(row.price)
    except ValueError:
        price = None
    if price is None or float(price) <= 0:
        return RowError(row_number, "price", "Valid price is required")

    category_id = None
    category_name = _text(row.category_name)
    if category_name:
        category_id = categories.resolve(category_name)
        if not category_id:
            return RowError(
                row_number,
                "category_name",
                f'Category "{category_name}" not found. '
                f"Available categories: {', '.join(categories.names)}"
            )

    numbers: dict[str, Optional[Decimal]] = {}
    for field_name in DECIMAL_FIELDS + DIMENSION_FIELDS + ("stock_quantity",):
        try:
            numbers[field_name] = _parse_decimal(getattr(row, field_name))
        except ValueError:
            return RowError(row_number, field_name, f"{field_name} must be a valid number")

    stock_quantity = int(numbers["stock_quantity"]) if numbers["stock_quantity"] is not None else 0

    dimensions = {
        dim: float(numbers[dim])
        for dim in DIMENSION_FIELDS
        if numbers[dim] is not None
    }

    currency = _text(row.currency) or default_currency

    return ValidatedProduct(
        row_index=index,
        vendor_id=vendor_id,
        name=name,
        price=price,
        sku=_text(row.sku) or f"SKU-{epoch_ms}-{index}",
        category_id=category_id,
        subtitle=_text(row.subtitle) or "",
        description=_text(row.description) or "",
        brand=_text(row.brand) or "",
        mrp=numbers["mrp"],
        sale_price=numbers["sale_price"],
        discount_percentage=numbers["discount_percentage"],
        currency=currency,
        base_currency=_text(row.base_currency) or currency,
        stock_quantity=stock_quantity,
        weight=numbers["weight"],
        dimensions=dimensions or None,
        **{list_field: split_pipe_list(getattr(row, list_field)) for list_field in LIST_FIELDS},
        video_url=_text(row.video_url),
        is_featured=parse_bool(row.is_featured, default=False),
        is_new_arrival=parse_bool(row.is_new_arrival, default=True),
        is_on_sale=parse_bool(row.is_on_sale, default=False),
        shipping_required=parse_bool(row.shipping_required, default=True),
        sizing_required=parse_bool(row.sizing_required, default=False),
        in_stock=parse_bool(row.in_stock, default=stock_quantity > 0),
        product_type=_text(row.product_type),
        status=_text(row.status) or "active",
        meta_title=_text(row.meta_title),
        meta_description=_text(row.meta_description),
        size_chart_override=_text(row.size_chart_override) or "auto",
        approval_status=approval_status,
        created_at=timestamp,
        updated_at=timestamp,
    )


# ===================
# COERCION HELPERS
# ===================

def split_pipe_list(value: Optional[str]) -> list[str]:
    """
    Split a pipe-delimited cell into its items.

    "Black| White||Silver" -> ["Black", "White", "Silver"]
    Order and duplicates are kept; blank items are dropped.
    """
    if not value:
        return []
    return [item.strip() for item in value.split("|") if item.strip()]


def parse_bool(value: Optional[str], default: bool) -> bool:
    """
    Parse a spreadsheet flag.

    "true", "1" and "yes" (any case) are True, any other text is False.
    A blank or missing cell returns the default.
    """
    text = _text(value)
    if text is None:
        return default
    return text.lower() in TRUE_TOKENS


def _parse_decimal(value: Optional[str]) -> Optional[Decimal]:
    """Parse a numeric cell. None for blank, ValueError for garbage."""
    text = _text(value)
    if text is None:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"Not a number: {text}")
    if not number.is_finite() or not math.isfinite(float(number)):
        raise ValueError(f"Not a finite number: {text}")
    return number


def _text(value: Optional[str]) -> Optional[str]:
    """Trimmed text, or None when blank."""
    if value is None:
        return None
    value = value.strip()
    return value or None
