"""
Inventory reads and the versioned stock write shared with the sale ledger.
"""
import logging
import time
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, contains_eager, joinedload

from src.models.database import InventoryRecord, Item, utcnow
from src.models.schemas import InventoryUpdate
from src.services.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

OUT_OF_STOCK = "Out of Stock"
LOW_STOCK = "Low Stock"
IN_STOCK = "In Stock"


def stock_status(quantity: int, min_stock_level: int) -> str:
    """Derived label for a stock count; never stored."""
    if quantity <= 0:
        return OUT_OF_STOCK
    if quantity <= min_stock_level:
        return LOW_STOCK
    return IN_STOCK


def lock_inventory(db: Session, item_id: int) -> Optional[InventoryRecord]:
    """
    Read an item's inventory record for writing.

    Takes a row lock where the backend supports ``FOR UPDATE`` and always
    reloads the row so the version used for the compare-and-swap is current.
    """
    return (
        db.query(InventoryRecord)
        .options(joinedload(InventoryRecord.item, innerjoin=True))
        .filter(InventoryRecord.item_id == item_id)
        .with_for_update(of=InventoryRecord)
        .populate_existing()
        .first()
    )


def write_inventory(
    db: Session,
    record: InventoryRecord,
    new_quantity: int,
    min_stock_level: Optional[int] = None,
) -> int:
    """
    Compare-and-swap a new quantity onto ``record``.

    The UPDATE only matches while the row still carries the version that was
    read; otherwise another transaction got there first and ConflictError is
    raised. Returns the new version. Does not commit.
    """
    expected_version = record.version
    new_version = expected_version + 1
    if min_stock_level is None:
        min_stock_level = record.min_stock_level

    update_count = db.execute(
        update(InventoryRecord)
        .where(InventoryRecord.id == record.id, InventoryRecord.version == expected_version)
        .values(
            quantity=new_quantity,
            min_stock_level=min_stock_level,
            version=new_version,
            last_updated=utcnow(),
        )
        .execution_options(synchronize_session=False)
    ).rowcount

    if update_count == 0:
        raise ConflictError(
            f"Inventory for item {record.item_id} was modified by another transaction"
        )

    logger.info(
        f"Inventory for item {record.item_id}: quantity {record.quantity} -> {new_quantity} "
        f"(version {new_version})"
    )
    return new_version


def _row(record: InventoryRecord) -> dict:
    return {
        "id": record.id,
        "item_id": record.item_id,
        "item_name": record.item.name,
        "sku": record.item.sku,
        "category": record.item.category,
        "price": record.item.price,
        "quantity": record.quantity,
        "min_stock_level": record.min_stock_level,
        "version": record.version,
        "last_updated": record.last_updated,
        "stock_status": stock_status(record.quantity, record.min_stock_level),
    }


class InventoryService:
    """Inventory queries and manual stock adjustments"""

    def __init__(self, db: Session, max_retries: int = 3):
        self.db = db
        self.max_retries = max_retries

    def _records(self):
        return (
            self.db.query(InventoryRecord)
            .join(InventoryRecord.item)
            .options(contains_eager(InventoryRecord.item))
        )

    def list_inventory(self) -> List[dict]:
        records = self._records().order_by(Item.name).all()
        return [_row(record) for record in records]

    def low_stock(self) -> List[dict]:
        records = (
            self._records()
            .filter(InventoryRecord.quantity <= InventoryRecord.min_stock_level)
            .order_by(InventoryRecord.quantity, Item.name)
            .all()
        )
        return [_row(record) for record in records]

    def summary(self) -> dict:
        records = self._records().all()
        statuses = [stock_status(r.quantity, r.min_stock_level) for r in records]
        return {
            "total_items": len(records),
            "total_quantity": sum(r.quantity for r in records),
            "in_stock": statuses.count(IN_STOCK),
            "low_stock": statuses.count(LOW_STOCK),
            "out_of_stock": statuses.count(OUT_OF_STOCK),
            "stock_value": sum((Decimal(r.quantity) * r.item.cost for r in records), Decimal("0.00")),
        }

    def get_record(self, item_id: int) -> dict:
        record = self._records().filter(InventoryRecord.item_id == item_id).first()
        if not record:
            raise NotFoundError(f"Inventory record for item {item_id} not found")
        return _row(record)

    def adjust_stock(self, item_id: int, changes: InventoryUpdate) -> dict:
        """Set an item's counted stock and/or low-stock threshold (restock, recount)."""
        for attempt in range(self.max_retries):
            try:
                record = lock_inventory(self.db, item_id)
                if not record:
                    raise NotFoundError(f"Inventory record for item {item_id} not found")
                quantity = record.quantity if changes.quantity is None else changes.quantity
                write_inventory(self.db, record, quantity, changes.min_stock_level)
                self.db.commit()
                break
            except ConflictError:
                self.db.rollback()
                if attempt == self.max_retries - 1:
                    raise
                logger.warning(f"Concurrency conflict adjusting item {item_id} on attempt {attempt + 1}, retrying...")
                time.sleep(0.01 * (attempt + 1))
            except Exception:
                self.db.rollback()
                raise
        return self.get_record(item_id)
