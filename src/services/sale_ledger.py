import time
from decimal import Decimal
from typing import Callable, Optional, TypeVar
from sqlalchemy import delete, update
from sqlalchemy.orm import Session
from src.models.database import Customer, InventoryRecord, Item, Sale, utcnow
from src.models import schemas
from src.models.schemas import SaleCreate, SaleUpdate
from src.services.errors import (
    ConflictError,
    InsufficientStockError,
    LedgerError,
    NotFoundError,
    ValidationError,
)
from src.services.inventory_service import lock_inventory, write_inventory
import logging

logger = logging.getLogger(__name__)

T = TypeVar("T")

CENTS = Decimal("0.01")


class SaleLedger:
    """
    Keeps every item's stock equal to its received quantity minus the
    quantities of the sales currently referencing it.

    Each operation runs as one transaction: the sale row and the inventory
    deltas commit together or not at all. Inventory writes are versioned
    compare-and-swaps; a lost swap rolls back and the operation is re-run
    from a fresh read, so the loser of a race sees the winner's result.
    """

    def __init__(self, db: Session, max_retries: int = 3):
        self.db = db
        self.max_retries = max_retries

    def record_sale(self, sale_data: SaleCreate) -> Sale:
        """Insert a sale and debit its item's stock."""
        return self._run("record sale", lambda: self._record_sale_attempt(sale_data))

    def update_sale(self, sale_id: int, sale_data: SaleUpdate) -> Sale:
        """
        Rewrite a sale and move stock to match.

        The sale's previous item and quantity are read inside the transaction,
        never taken from the caller.
        """
        return self._run(f"update sale {sale_id}", lambda: self._update_sale_attempt(sale_id, sale_data))

    def delete_sale(self, sale_id: int) -> schemas.Sale:
        """Remove a sale and give its quantity back to the item's stock."""
        return self._run(f"delete sale {sale_id}", lambda: self._delete_sale_attempt(sale_id))

    def _run(self, action: str, attempt_fn: Callable[[], T]) -> T:
        for attempt in range(self.max_retries):
            try:
                result = attempt_fn()
                self.db.commit()
                return result
            except ConflictError as e:
                self.db.rollback()
                if attempt == self.max_retries - 1:
                    logger.error(f"Unable to {action} after {self.max_retries} attempts: {e}")
                    raise ConflictError(f"Unable to {action} after {self.max_retries} attempts: {e}") from e
                logger.warning(f"Concurrency conflict on attempt {attempt + 1} to {action}, retrying...")
                time.sleep(0.01 * (attempt + 1))
            except LedgerError as e:
                self.db.rollback()
                logger.warning(f"Rejected {action}: {e}")
                raise
            except Exception as e:
                self.db.rollback()
                logger.error(f"Error trying to {action}: {str(e)}")
                raise
        raise ConflictError(f"Unable to {action}")

    def _validate(self, sale_data: schemas.SaleBase):
        if sale_data.quantity is None or sale_data.quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        if sale_data.unit_price is None or sale_data.unit_price < 0:
            raise ValidationError("Unit price cannot be negative")
        if sale_data.customer_id is not None:
            if not self.db.get(Customer, sale_data.customer_id):
                raise NotFoundError(f"Customer {sale_data.customer_id} not found")

    def _lock_for_item(self, item_id: int):
        if not self.db.get(Item, item_id):
            raise NotFoundError(f"Item {item_id} not found")
        record = lock_inventory(self.db, item_id)
        if not record:
            raise NotFoundError(f"Inventory record for item {item_id} not found")
        return record

    @staticmethod
    def _price(sale_data: schemas.SaleBase) -> Decimal:
        return Decimal(sale_data.unit_price).quantize(CENTS)

    @classmethod
    def _total(cls, sale_data: schemas.SaleBase) -> Decimal:
        return (cls._price(sale_data) * sale_data.quantity).quantize(CENTS)

    def _record_sale_attempt(self, sale_data: SaleCreate) -> Sale:
        self._validate(sale_data)
        record = self._lock_for_item(sale_data.item_id)

        if record.quantity < sale_data.quantity:
            raise InsufficientStockError(record.item.name, record.quantity, sale_data.quantity)

        write_inventory(self.db, record, record.quantity - sale_data.quantity)

        sale = Sale(
            customer_id=sale_data.customer_id,
            item_id=sale_data.item_id,
            quantity=sale_data.quantity,
            unit_price=self._price(sale_data),
            total_amount=self._total(sale_data),
            sale_date=utcnow(),
            payment_method=sale_data.payment_method,
            notes=sale_data.notes,
        )
        self.db.add(sale)
        self.db.flush()

        logger.info(
            f"Recorded sale {sale.id}: {sale.quantity} x {record.item.name} "
            f"at {sale.unit_price} = {sale.total_amount}"
        )
        return sale

    def _get_sale_for_update(self, sale_id: int) -> Sale:
        sale = (
            self.db.query(Sale)
            .filter(Sale.id == sale_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if not sale:
            raise NotFoundError(f"Sale {sale_id} not found")
        return sale

    def _write_sale(self, sale: Sale, **values):
        """
        Compare-and-swap the sale row against the version read in this attempt.

        Stock deltas are computed from that read, so a sale rewritten or
        deleted in between must fail the attempt rather than commit them.
        """
        expected_version = sale.version
        update_count = self.db.execute(
            update(Sale)
            .where(Sale.id == sale.id, Sale.version == expected_version)
            .values(version=expected_version + 1, **values)
            .execution_options(synchronize_session=False)
        ).rowcount

        if update_count == 0:
            raise ConflictError(f"Sale {sale.id} was modified by another transaction")
        self.db.expire(sale)

    def _update_sale_attempt(self, sale_id: int, sale_data: SaleUpdate) -> Sale:
        self._validate(sale_data)
        sale = self._get_sale_for_update(sale_id)
        old_item_id = sale.item_id
        old_quantity = sale.quantity
        new_item_id = sale_data.item_id
        new_quantity = sale_data.quantity

        if old_item_id == new_item_id:
            record = self._lock_for_item(new_item_id)
            available = record.quantity + old_quantity
            if available < new_quantity:
                raise InsufficientStockError(record.item.name, available, new_quantity)
            write_inventory(self.db, record, available - new_quantity)
        else:
            # Lowest item id first so two crossing switches cannot deadlock
            records = {
                item_id: self._lock_for_item(item_id)
                for item_id in sorted(i for i in (old_item_id, new_item_id) if i is not None)
            }

            new_record = records[new_item_id]
            if new_record.quantity < new_quantity:
                raise InsufficientStockError(new_record.item.name, new_record.quantity, new_quantity)

            if old_item_id is not None:
                old_record = records[old_item_id]
                write_inventory(self.db, old_record, old_record.quantity + old_quantity)
            else:
                logger.warning(f"Sale {sale_id} references a removed item; nothing to restore")
            write_inventory(self.db, new_record, new_record.quantity - new_quantity)

        self._write_sale(
            sale,
            customer_id=sale_data.customer_id,
            item_id=new_item_id,
            quantity=new_quantity,
            unit_price=self._price(sale_data),
            total_amount=self._total(sale_data),
            payment_method=sale_data.payment_method,
            notes=sale_data.notes,
        )

        logger.info(
            f"Updated sale {sale_id}: item {old_item_id} x {old_quantity} -> "
            f"item {new_item_id} x {new_quantity}"
        )
        return sale

    def _delete_sale_attempt(self, sale_id: int) -> schemas.Sale:
        sale = self._get_sale_for_update(sale_id)
        snapshot = schemas.Sale.model_validate(sale)

        record: Optional[InventoryRecord] = None
        if sale.item_id is not None:
            record = lock_inventory(self.db, sale.item_id)
        if record is not None:
            write_inventory(self.db, record, record.quantity + sale.quantity)
        else:
            logger.warning(f"Sale {sale_id} references a removed item; stock not restored")

        delete_count = self.db.execute(
            delete(Sale)
            .where(Sale.id == sale_id, Sale.version == sale.version)
            .execution_options(synchronize_session=False)
        ).rowcount
        if delete_count == 0:
            raise ConflictError(f"Sale {sale_id} was modified by another transaction")
        self.db.expunge(sale)

        logger.info(f"Deleted sale {sale_id}, restored {snapshot.quantity} to item {snapshot.item_id}")
        return snapshot
