"""
Bulk upload models.

Dataclasses carry the batch between validator, conflict resolver and
persistence. Pydantic schemas define the HTTP request/response.
"""

from dataclasses import dataclass, field
from typing import Optional

from pydantic import Field

from models.base import CamelSchema
from models.product import CandidateRow, ProductResult, ValidatedProduct

# Row 1 of the spreadsheet is the header; data row i (0-based) is row i + 2
HEADER_ROW_OFFSET = 2

SKU_CONFLICT_REASON = "SKU exists with different vendor"
SKU_DUPLICATE_REASON = "SKU duplicated within upload"


# ===================
# PIPELINE TYPES
# ===================

@dataclass
class RowError:
    """Single validation failure, reported by spreadsheet row number."""
    row_number: int
    field: str
    message: str

    def __str__(self) -> str:
        return f"Row {self.row_number}: {self.message}"


@dataclass
class RowValidationResult:
    """Output of the row validator."""
    products: list[ValidatedProduct] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no row failed."""
        return len(self.errors) == 0

    def error_messages(self) -> list[str]:
        return [str(e) for e in self.errors]


@dataclass
class ConflictResolution:
    """Audit entry for a SKU the resolver had to rename."""
    original_sku: str
    new_sku: str
    product_name: str
    reason: str = SKU_CONFLICT_REASON


@dataclass
class ClassifiedRow:
    """A validated product with its final SKU and, for updates, its target."""
    product: ValidatedProduct
    final_sku: str
    existing_id: Optional[str] = None

    @property
    def renamed(self) -> bool:
        return self.final_sku != self.product.sku


@dataclass
class ClassifiedBatch:
    """Disjoint insert/update partition of a validated upload."""
    to_insert: list[ClassifiedRow] = field(default_factory=list)
    to_update: list[ClassifiedRow] = field(default_factory=list)
    sku_conflicts: list[ConflictResolution] = field(default_factory=list)

    @property
    def renamed(self) -> list[ClassifiedRow]:
        return [row for row in self.to_insert if row.renamed]

    def __len__(self) -> int:
        return len(self.to_insert) + len(self.to_update)


@dataclass
class PersistenceReport:
    """What the store accepted and rejected for one upload."""
    total_submitted: int = 0
    inserted_items: list[ProductResult] = field(default_factory=list)
    updated_items: list[ProductResult] = field(default_factory=list)
    sku_conflicts: list[ConflictResolution] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def inserted(self) -> int:
        return len(self.inserted_items)

    @property
    def updated(self) -> int:
        return len(self.updated_items)

    @property
    def total_processed(self) -> int:
        return self.inserted + self.updated

    @property
    def sku_conflicts_resolved(self) -> int:
        return len(self.sku_conflicts)

    @property
    def has_success(self) -> bool:
        """At least one row was written."""
        return self.total_processed > 0

    def message(self) -> str:
        """Human summary shown by the dashboard after an upload."""
        message = f"Successfully processed {self.total_processed} products"
        parts = []
        if self.inserted:
            parts.append(f"{self.inserted} created")
        if self.updated:
            parts.append(f"{self.updated} updated")
        if parts:
            message += f" ({', '.join(parts)})"
        if self.sku_conflicts:
            message += f" - {self.sku_conflicts_resolved} SKU conflicts resolved"
        if self.errors:
            message += f" - {len(self.errors)} errors occurred"
        return message


# ===================
# API SCHEMAS
# ===================

class BulkUploadRequest(CamelSchema):
    """
    Bulk upload request body.

    Both fields are optional at the schema level; the service rejects a
    missing vendor or an empty list with a 400 and a readable message.
    """

    vendor_id: Optional[str] = Field(None, description="Uploading vendor UUID")
    products: Optional[list[CandidateRow]] = Field(None, description="Parsed spreadsheet rows")


class BulkUploadSummary(CamelSchema):
    """Counts for one upload."""

    total_uploaded: int
    total_processed: int
    inserted: int
    updated: int
    sku_conflicts_resolved: int
    errors: int


class SkuConflictItem(CamelSchema):
    """Renamed SKU as returned to the vendor."""

    original_sku: str
    new_sku: str
    product_name: str
    reason: str


class BulkUploadData(CamelSchema):
    """Per-row results of one upload."""

    inserted: list[ProductResult] = Field(default_factory=list)
    updated: list[ProductResult] = Field(default_factory=list)
    sku_conflicts: list[SkuConflictItem] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class BulkUploadResponse(CamelSchema):
    """Successful (possibly partial) bulk upload."""

    success: bool = True
    message: str
    summary: BulkUploadSummary
    data: BulkUploadData

    @classmethod
    def from_report(cls, report: PersistenceReport, total_uploaded: int) -> "BulkUploadResponse":
        return cls(
            success=True,
            message=report.message(),
            summary=BulkUploadSummary(
                total_uploaded=total_uploaded,
                total_processed=report.total_processed,
                inserted=report.inserted,
                updated=report.updated,
                sku_conflicts_resolved=report.sku_conflicts_resolved,
                errors=len(report.errors),
            ),
            data=BulkUploadData(
                inserted=report.inserted_items,
                updated=report.updated_items,
                sku_conflicts=[
                    SkuConflictItem(
                        original_sku=c.original_sku,
                        new_sku=c.new_sku,
                        product_name=c.product_name,
                        reason=c.reason,
                    )
                    for c in report.sku_conflicts
                ],
                errors=report.errors,
            ),
        )
