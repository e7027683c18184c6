"""
SKU conflict resolver for bulk uploads.

Decides, per validated product, whether it updates one of the vendor's
existing products, is inserted as-is, or is inserted under a renamed SKU
because another vendor already owns the SKU.

Classification is pure: it works only on the snapshots passed in, so the
same inputs always produce the same partition and the same renamed SKUs.

Business rules:
- SKU owned by this vendor          -> UPDATE the existing product
- SKU owned by another vendor       -> INSERT as "{sku}-V{last 4 of vendor id}"
                                       (then "-1", "-2", ... until free)
- SKU unknown                       -> INSERT unchanged
"""

from itertools import islice
from typing import Iterable
import structlog

from models.bulk_upload import (
    ClassifiedBatch,
    ClassifiedRow,
    ConflictResolution,
    SKU_CONFLICT_REASON,
    SKU_DUPLICATE_REASON,
)
from models.product import ExistingProductRef, ValidatedProduct

logger = structlog.get_logger(__name__)


def build_sku_index(refs: Iterable[ExistingProductRef]) -> dict[str, ExistingProductRef]:
    """Index existing products by SKU (last one wins on duplicates)."""
    return {ref.sku: ref for ref in refs}


def renamed_sku_candidates(original_sku: str, vendor_id: str):
    """
    Yield replacement SKUs in the order they are tried.

    "X1", vendor "...abcd234" -> "X1-Vd234", "X1-Vd234-1", "X1-Vd234-2", ...
    """
    base = f"{original_sku}-V{vendor_id[-4:]}"
    yield base
    counter = 1
    while True:
        yield f"{base}-{counter}"
        counter += 1


def next_free_sku(original_sku: str, vendor_id: str, taken) -> str:
    """First rename candidate that is not in `taken`."""
    for candidate in renamed_sku_candidates(original_sku, vendor_id):
        if candidate not in taken:
            return candidate


def rename_lookup_candidates(
    rows: Iterable[ClassifiedRow],
    vendor_id: str,
    checked: set[str],
    window: int,
) -> list[str]:
    """
    Rename candidates that still have to be checked against the store.

    For every renamed row whose final SKU was never looked up, returns the
    next `window` candidates of its original SKU that are not in `checked`.
    Empty when every final SKU is known to be free.
    """
    candidates: dict[str, None] = {}
    for row in rows:
        if row.final_sku in checked:
            continue
        unchecked = (
            c for c in renamed_sku_candidates(row.product.sku, vendor_id)
            if c not in checked
        )
        candidates.update(dict.fromkeys(islice(unchecked, window)))
    return list(candidates)


def classify(
    products: list[ValidatedProduct],
    vendor_id: str,
    vendor_scoped: dict[str, ExistingProductRef],
    global_refs: dict[str, ExistingProductRef],
) -> ClassifiedBatch:
    """
    Partition validated products into inserts and updates.

    Args:
        products: Validated rows in upload order
        vendor_id: Uploading vendor
        vendor_scoped: Existing products of this vendor, by SKU
        global_refs: Existing products of every vendor, by SKU

    Returns:
        ClassifiedBatch whose to_insert and to_update together hold every
        product exactly once
    """
    batch = ClassifiedBatch()

    # SKUs handed out in this pass, and everything a new row may not use
    assigned: set[str] = set()
    unavailable = set(global_refs)

    for product in products:
        original_sku = product.sku

        if original_sku in vendor_scoped:
            existing = vendor_scoped[original_sku]
            if existing.vendor_id != vendor_id:
                raise ValueError(
                    f"Vendor-scoped snapshot holds SKU {original_sku} of vendor {existing.vendor_id}"
                )
            batch.to_update.append(ClassifiedRow(
                product=product,
                final_sku=original_sku,
                existing_id=existing.id,
            ))
            assigned.add(original_sku)
            unavailable.add(original_sku)
            logger.debug("sku_classified_update", sku=original_sku, product_id=existing.id)
            continue

        if original_sku in global_refs or original_sku in assigned:
            reason = (
                SKU_CONFLICT_REASON if original_sku in global_refs
                else SKU_DUPLICATE_REASON
            )
            new_sku = next_free_sku(original_sku, vendor_id, unavailable)
            batch.to_insert.append(ClassifiedRow(product=product, final_sku=new_sku))
            batch.sku_conflicts.append(ConflictResolution(
                original_sku=original_sku,
                new_sku=new_sku,
                product_name=product.name,
                reason=reason,
            ))
            assigned.add(new_sku)
            unavailable.add(new_sku)
            logger.debug(
                "sku_classified_rename",
                original_sku=original_sku,
                new_sku=new_sku,
                reason=reason
            )
            continue

        batch.to_insert.append(ClassifiedRow(product=product, final_sku=original_sku))
        assigned.add(original_sku)
        unavailable.add(original_sku)
        logger.debug("sku_classified_insert", sku=original_sku)

    logger.info(
        "skus_classified",
        vendor_id=vendor_id,
        to_insert=len(batch.to_insert),
        to_update=len(batch.to_update),
        sku_conflicts=len(batch.sku_conflicts)
    )

    return batch
