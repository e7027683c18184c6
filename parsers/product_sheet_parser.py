"""
Product sheet parser for vendor bulk uploads.

Reads the vendor's CSV or XLSX product sheet into CandidateRows and
generates the downloadable template.

Header handling: "Category Name " -> "category_name" (trimmed, lowercased,
whitespace runs replaced by underscores). Fully blank rows are skipped.
Cell values are kept as text; coercion happens in the row validator.
"""

import re
from dataclasses import dataclass, field
from io import BytesIO, StringIO
from pathlib import Path
from typing import Union
import structlog

import pandas as pd

from models.product import CandidateRow
from exceptions import ProductSheetParseError

logger = structlog.get_logger(__name__)

REQUIRED_COLUMNS = ["name", "price"]

SUPPORTED_EXTENSIONS = (".csv", ".xlsx")

TEMPLATE_COLUMNS = [
    "name", "subtitle", "description", "brand", "sku", "category_name",
    "subcategory_name", "price", "mrp", "sale_price", "discount_percentage",
    "currency", "base_currency", "stock_quantity", "in_stock", "weight",
    "length", "width", "height", "sizes", "colors", "tags", "box_contents",
    "usage_instructions", "care_instructions", "safety_notes", "image_urls",
    "video_url", "is_featured", "is_new_arrival", "is_on_sale",
    "shipping_required", "sizing_required", "product_type", "status",
    "meta_title", "meta_description", "size_chart_override",
]

TEMPLATE_SAMPLE_ROWS = [
    {
        "name": "Premium Wireless Headphones",
        "subtitle": "High-Quality Audio Experience",
        "description": "Wireless headphones with noise cancellation.",
        "brand": "AudioTech",
        "sku": "AT-WH-001",
        "category_name": "Electronics",
        "price": "199.99",
        "mrp": "249.99",
        "sale_price": "179.99",
        "discount_percentage": "20",
        "currency": "USD",
        "base_currency": "USD",
        "stock_quantity": "50",
        "in_stock": "true",
        "weight": "0.3",
        "length": "20",
        "width": "18",
        "height": "8",
        "sizes": "One Size",
        "colors": "Black|White|Silver",
        "tags": "wireless|premium|noise-cancelling|bluetooth",
        "box_contents": "Headphones|Charging Cable|Carrying Case|User Manual",
        "usage_instructions": "Charge for 2 hours before first use|Pair via Bluetooth settings",
        "care_instructions": "Clean with dry cloth only|Store in provided case",
        "safety_notes": "Do not use while driving|Keep volume at safe levels",
        "is_featured": "true",
        "is_new_arrival": "true",
        "is_on_sale": "true",
        "shipping_required": "true",
        "sizing_required": "false",
        "product_type": "Electronics",
        "status": "active",
        "meta_title": "Premium Wireless Headphones - AudioTech",
        "size_chart_override": "auto",
    },
    {
        "name": "Cotton T-Shirt",
        "subtitle": "Comfortable Everyday Wear",
        "description": "100% organic cotton t-shirt with modern fit.",
        "brand": "ComfortWear",
        "sku": "CW-TS-002",
        "category_name": "Fashion",
        "subcategory_name": "T-Shirts",
        "price": "29.99",
        "mrp": "39.99",
        "currency": "USD",
        "stock_quantity": "100",
        "weight": "0.2",
        "sizes": "XS|S|M|L|XL|XXL",
        "colors": "White|Black|Navy|Gray",
        "tags": "cotton|casual|organic",
        "box_contents": "T-Shirt|Care Instructions",
        "care_instructions": "Wash with similar colors|Do not bleach",
        "is_featured": "false",
        "is_new_arrival": "false",
        "shipping_required": "true",
        "sizing_required": "true",
        "product_type": "Apparel",
        "status": "active",
        "size_chart_override": "auto",
    },
]


@dataclass
class ProductSheetParseResult:
    """Rows read from a product sheet."""
    rows: list[CandidateRow] = field(default_factory=list)
    columns: list[str] = field(default_factory=list)
    skipped_blank_rows: int = 0

    @property
    def has_data(self) -> bool:
        return len(self.rows) > 0


def normalize_header(header) -> str:
    """'  Category Name ' -> 'category_name'"""
    return re.sub(r"\s+", "_", str(header).strip().lower())


def parse_product_sheet(
    file: Union[str, Path, BytesIO],
    filename: str,
) -> ProductSheetParseResult:
    """
    Parse a vendor product sheet.

    Args:
        file: File path or file-like object
        filename: Original filename (its extension selects the reader)

    Returns:
        ProductSheetParseResult with one CandidateRow per non-blank row

    Raises:
        ProductSheetParseError: Unsupported type, unreadable file, missing
            required columns, or no data rows
    """
    extension = Path(filename or "").suffix.lower()
    logger.info("parsing_product_sheet", filename=filename, extension=extension)

    if extension not in SUPPORTED_EXTENSIONS:
        raise ProductSheetParseError(
            message=f"Unsupported file type: {extension or 'none'}",
            details={"supported": list(SUPPORTED_EXTENSIONS)}
        )

    try:
        if extension == ".csv":
            df = pd.read_csv(file, dtype=str, keep_default_na=False, skipinitialspace=True)
        else:
            df = pd.read_excel(file, dtype=str, keep_default_na=False, engine="openpyxl")
    except Exception as e:
        logger.error("product_sheet_read_failed", filename=filename, error=str(e))
        raise ProductSheetParseError(
            message="Failed to read product sheet",
            details={"original_error": str(e)}
        )

    df.columns = [normalize_header(col) for col in df.columns]

    missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
    if missing:
        raise ProductSheetParseError(
            message=f"Missing required columns: {', '.join(missing)}",
            details={"missing": missing, "found": list(df.columns)}
        )

    result = ProductSheetParseResult(columns=list(df.columns))

    for record in df.to_dict(orient="records"):
        values = {
            key: str(value).strip()
            for key, value in record.items()
            if not pd.isna(value) and str(value).strip()
        }
        if not values:
            result.skipped_blank_rows += 1
            continue
        result.rows.append(CandidateRow(**values))

    if not result.has_data:
        raise ProductSheetParseError(message="No valid data rows found")

    logger.info(
        "product_sheet_parsed",
        filename=filename,
        row_count=len(result.rows),
        skipped_blank_rows=result.skipped_blank_rows
    )

    return result


def generate_template() -> str:
    """CSV template with every supported column and two sample products."""
    df = pd.DataFrame(TEMPLATE_SAMPLE_ROWS, columns=TEMPLATE_COLUMNS).fillna("")
    output = StringIO()
    df.to_csv(output, index=False)
    return output.getvalue()
