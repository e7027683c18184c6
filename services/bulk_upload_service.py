"""
Bulk product upload orchestration.

Runs one upload end to end:

    preconditions -> vendor -> categories -> row validation (all-or-nothing)
    -> existing-SKU snapshots -> classification -> persistence -> response

Persistence is deliberately asymmetric:
- Inserts go to the store as ONE multi-row insert. If it fails, no insert
  row is stored and the failure is reported once.
- Updates are written one row at a time. A failing row is reported and the
  next row is still attempted.

The call only fails as a whole when not a single row was written.
"""

from datetime import datetime
from typing import Optional
import structlog

from config import settings
from models.bulk_upload import (
    BulkUploadResponse,
    ClassifiedBatch,
    ClassifiedRow,
    PersistenceReport,
)
from models.category import CategoryLookup
from models.product import (
    ApprovalStatus,
    CandidateRow,
    ExistingProductRef,
    ProductAction,
    ProductResult,
    ValidatedProduct,
)
from services.product_service import ProductService, get_product_service
from services.vendor_service import VendorService, get_vendor_service
from services.category_service import CategoryService, get_category_service
from services.row_validator import validate_rows
from services.sku_conflict_resolver import build_sku_index, classify, rename_lookup_candidates
from exceptions import (
    BulkUploadInputError,
    BulkUploadValidationError,
    BulkOperationFailedError,
    CategoryLookupError,
    DatabaseError,
    ExistingSKULookupError,
    VendorLookupError,
)

logger = structlog.get_logger(__name__)


class BulkUploadService:
    """
    Bulk product ingestion for one vendor.

    Collaborators are injected so tests can swap any of them.
    """

    def __init__(
        self,
        product_service: ProductService,
        vendor_service: VendorService,
        category_service: CategoryService,
    ):
        self.product_service = product_service
        self.vendor_service = vendor_service
        self.category_service = category_service

    # ===================
    # ENTRY POINT
    # ===================

    def upload(
        self,
        vendor_id: Optional[str],
        rows: Optional[list[CandidateRow]],
        now: Optional[datetime] = None,
    ) -> BulkUploadResponse:
        """
        Validate, reconcile and store an uploaded product batch.

        Args:
            vendor_id: Uploading vendor UUID
            rows: Raw product rows in spreadsheet order
            now: Clock override for timestamps and placeholder SKUs

        Returns:
            BulkUploadResponse (may carry per-row errors)

        Raises:
            BulkUploadInputError: Missing vendor, empty or oversized batch
            VendorNotFoundError: Unknown vendor
            CollaboratorLookupError: Vendor, category or SKU lookup failed
            BulkUploadValidationError: Any row is invalid (nothing written)
            BulkOperationFailedError: No row could be written
        """
        vendor_id = (vendor_id or "").strip()
        self._check_preconditions(vendor_id, rows)

        logger.info("bulk_upload_started", vendor_id=vendor_id, product_count=len(rows))

        self._verify_vendor(vendor_id)
        categories = self._load_categories()

        validation = validate_rows(
            rows,
            categories,
            vendor_id=vendor_id,
            approval_status=ApprovalStatus.PENDING,
            now=now,
            default_currency=settings.default_currency,
        )
        if not validation.success:
            logger.warning(
                "bulk_upload_validation_failed",
                vendor_id=vendor_id,
                error_count=len(validation.errors)
            )
            raise BulkUploadValidationError(validation.error_messages(), total_count=len(rows))

        batch = self.classify_products(validation.products, vendor_id)
        report = self.persist(batch, vendor_id)

        if not report.has_success:
            logger.error(
                "bulk_upload_failed",
                vendor_id=vendor_id,
                errors=report.errors
            )
            raise BulkOperationFailedError(report.errors)

        logger.info(
            "bulk_upload_completed",
            vendor_id=vendor_id,
            inserted=report.inserted,
            updated=report.updated,
            sku_conflicts=report.sku_conflicts_resolved,
            errors=len(report.errors)
        )

        return BulkUploadResponse.from_report(report, total_uploaded=len(rows))

    # ===================
    # PRECONDITIONS / LOOKUPS
    # ===================

    def _check_preconditions(self, vendor_id: str, rows: Optional[list[CandidateRow]]) -> None:
        if not vendor_id:
            raise BulkUploadInputError("Vendor ID is required")
        if not rows:
            raise BulkUploadInputError("Products array is required and cannot be empty")
        if len(rows) > settings.bulk_upload_max_rows:
            raise BulkUploadInputError(
                f"Too many products: {len(rows)} (maximum {settings.bulk_upload_max_rows} per upload)"
            )

    def _verify_vendor(self, vendor_id: str) -> None:
        """Vendor must exist. Its standing does not change approval: every row starts pending."""
        try:
            vendor = self.vendor_service.get_status(vendor_id)
        except DatabaseError as e:
            raise VendorLookupError(e.reason)

        logger.info(
            "bulk_upload_vendor_verified",
            vendor_id=vendor_id,
            vendor_status=vendor.status,
            is_active=vendor.is_active,
            approval_status=ApprovalStatus.PENDING.value
        )

    def _load_categories(self) -> CategoryLookup:
        try:
            return self.category_service.get_lookup()
        except DatabaseError as e:
            raise CategoryLookupError(e.reason)

    def load_sku_snapshots(
        self,
        skus: list[str],
        vendor_id: str
    ) -> tuple[dict[str, ExistingProductRef], dict[str, ExistingProductRef]]:
        """
        Read existing products for the uploaded SKUs.

        Returns:
            (vendor_scoped, global_refs), both keyed by SKU

        Raises:
            ExistingSKULookupError: If either read fails
        """
        try:
            global_refs = build_sku_index(self.product_service.get_existing_by_skus(skus))
            vendor_scoped = build_sku_index(
                self.product_service.get_existing_by_skus(skus, vendor_id=vendor_id)
            )
        except DatabaseError as e:
            raise ExistingSKULookupError(e.reason)

        logger.debug(
            "sku_snapshots_loaded",
            vendor_id=vendor_id,
            global_matches=len(global_refs),
            vendor_matches=len(vendor_scoped)
        )
        return vendor_scoped, global_refs

    def classify_products(self, products: list[ValidatedProduct], vendor_id: str) -> ClassifiedBatch:
        """
        Classify against fresh snapshots of the store.

        The snapshots only cover the uploaded SKUs, so a renamed SKU such as
        "X1-Vd234" may already exist from an earlier upload. Rename
        candidates are looked up and folded into the global snapshot until
        every final SKU has been checked against the store.
        """
        skus = [p.sku for p in products]
        vendor_scoped, global_refs = self.load_sku_snapshots(skus, vendor_id)
        checked = set(skus)

        while True:
            batch = classify(products, vendor_id, vendor_scoped, global_refs)
            candidates = rename_lookup_candidates(
                batch.renamed,
                vendor_id,
                checked,
                window=settings.sku_rename_lookup_window
            )
            if not candidates:
                return batch

            try:
                taken = self.product_service.get_existing_by_skus(candidates)
            except DatabaseError as e:
                raise ExistingSKULookupError(e.reason)

            logger.debug(
                "rename_candidates_checked",
                vendor_id=vendor_id,
                candidates=len(candidates),
                taken=len(taken)
            )
            global_refs.update(build_sku_index(taken))
            checked.update(candidates)

    # ===================
    # PERSISTENCE
    # ===================

    def persist(self, batch: ClassifiedBatch, vendor_id: str) -> PersistenceReport:
        """
        Write a classified batch and report every row's outcome.

        Args:
            batch: Output of classify()
            vendor_id: Uploading vendor (needed to re-classify on retry)

        Returns:
            PersistenceReport
        """
        report = PersistenceReport(
            total_submitted=len(batch),
            sku_conflicts=list(batch.sku_conflicts),
        )

        moved_to_update = self._insert_rows(batch.to_insert, vendor_id, report)

        for row in batch.to_update + moved_to_update:
            self._update_row(row, report)

        return report

    def _insert_rows(
        self,
        rows: list[ClassifiedRow],
        vendor_id: str,
        report: PersistenceReport
    ) -> list[ClassifiedRow]:
        """
        Insert all rows in one batch.

        The snapshot used for renaming can be stale when another upload
        inserted the same SKU in the meantime. On a unique-constraint
        violation the insert set is re-classified against fresh snapshots
        and resubmitted, up to settings.sku_conflict_max_retries times.

        Returns:
            Rows that re-classified as updates of the vendor's own products
        """
        moved_to_update: list[ClassifiedRow] = []
        retries_left = settings.sku_conflict_max_retries

        while rows:
            records = [row.product.to_insert_record(row.final_sku) for row in rows]
            try:
                created = self.product_service.bulk_create(records)
            except DatabaseError as e:
                if not (e.is_unique_violation and retries_left > 0):
                    report.errors.append(f"Insert failed: {e.reason}")
                    return moved_to_update

                retries_left -= 1
                logger.warning(
                    "bulk_insert_sku_conflict_retry",
                    vendor_id=vendor_id,
                    rows=len(rows),
                    retries_left=retries_left
                )
                try:
                    retry = self.classify_products([row.product for row in rows], vendor_id)
                except ExistingSKULookupError as lookup_error:
                    report.errors.append(f"Insert failed: {e.reason} ({lookup_error.message})")
                    return moved_to_update

                rows = retry.to_insert
                moved_to_update.extend(retry.to_update)
                report.sku_conflicts = retry.sku_conflicts
                continue

            report.inserted_items = [
                ProductResult(
                    id=str(item["id"]),
                    name=item.get("name") or row.product.name,
                    sku=item.get("sku") or row.final_sku,
                    action=ProductAction.CREATED,
                )
                for item, row in zip(created, rows)
            ]
            logger.info("bulk_insert_completed", vendor_id=vendor_id, inserted=len(created))
            return moved_to_update

        return moved_to_update

    def _update_row(self, row: ClassifiedRow, report: PersistenceReport) -> None:
        """Update one existing product. Failures are recorded, never raised."""
        name = row.product.name
        try:
            updated = self.product_service.update(row.existing_id, row.product.to_update_record())
        except DatabaseError as e:
            logger.warning(
                "bulk_update_row_failed",
                product_id=row.existing_id,
                sku=row.final_sku,
                error=e.reason
            )
            report.errors.append(f"Update failed for {name}: {e.reason}")
            return

        if updated is None:
            report.errors.append(f"Update failed for {name}: product no longer exists")
            return

        report.updated_items.append(ProductResult(
            id=str(updated.get("id", row.existing_id)),
            name=updated.get("name") or name,
            sku=updated.get("sku") or row.final_sku,
            action=ProductAction.UPDATED,
        ))


# Singleton instance for convenience
_bulk_upload_service: Optional[BulkUploadService] = None

def get_bulk_upload_service() -> BulkUploadService:
    """Get or create BulkUploadService instance."""
    global _bulk_upload_service
    if _bulk_upload_service is None:
        _bulk_upload_service = BulkUploadService(
            product_service=get_product_service(),
            vendor_service=get_vendor_service(),
            category_service=get_category_service(),
        )
    return _bulk_upload_service
