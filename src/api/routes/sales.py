from datetime import date, datetime, time
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session, joinedload
from typing import List, Optional
from src.core.config import Settings, get_settings
from src.core.database import get_db
from src.models.database import Sale as DBSale
from src.models.schemas import Sale, SaleCreate, SaleDetail, SaleUpdate
from src.services.errors import ConflictError, LedgerError, NotFoundError
from src.services.sale_ledger import SaleLedger

router = APIRouter()


def _detail(sale: DBSale) -> dict:
    row = Sale.model_validate(sale).model_dump()
    row.update(
        first_name=sale.customer.first_name if sale.customer else None,
        last_name=sale.customer.last_name if sale.customer else None,
        email=sale.customer.email if sale.customer else None,
        item_name=sale.item.name if sale.item else None,
        sku=sale.item.sku if sale.item else None,
    )
    return row


def _sales_query(db: Session):
    return db.query(DBSale).options(joinedload(DBSale.customer), joinedload(DBSale.item))


def _ledger_error(error: LedgerError) -> HTTPException:
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, ConflictError):
        return HTTPException(status_code=409, detail=str(error))
    # InsufficientStockError and ValidationError
    return HTTPException(status_code=400, detail=str(error))


@router.get("/", response_model=List[SaleDetail])
def get_sales(db: Session = Depends(get_db)):
    """Get all sales, newest first"""
    sales = _sales_query(db).order_by(DBSale.sale_date.desc(), DBSale.id.desc()).all()
    return [_detail(sale) for sale in sales]


@router.get("/date-range", response_model=List[SaleDetail])
def get_sales_by_date_range(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    """Get sales made between two dates, both days included"""
    if start_date is None or end_date is None:
        raise HTTPException(status_code=400, detail="Start date and end date are required")

    sales = (
        _sales_query(db)
        .filter(
            DBSale.sale_date >= datetime.combine(start_date, time.min),
            DBSale.sale_date <= datetime.combine(end_date, time.max),
        )
        .order_by(DBSale.sale_date.desc(), DBSale.id.desc())
        .all()
    )
    return [_detail(sale) for sale in sales]


@router.get("/{sale_id}", response_model=SaleDetail)
def get_sale(sale_id: int, db: Session = Depends(get_db)):
    """Get a specific sale"""
    sale = _sales_query(db).filter(DBSale.id == sale_id).first()
    if not sale:
        raise HTTPException(status_code=404, detail="Sale not found")
    return _detail(sale)


@router.post("/", response_model=Sale, status_code=status.HTTP_201_CREATED)
def create_sale(
    sale_data: SaleCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Record a sale and debit the item's stock"""
    try:
        ledger = SaleLedger(db, max_retries=settings.ledger_max_retries)
        return ledger.record_sale(sale_data)
    except LedgerError as e:
        raise _ledger_error(e)


@router.put("/{sale_id}", response_model=Sale)
def update_sale(
    sale_id: int,
    sale_data: SaleUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Update a sale, moving stock between items when the item changes"""
    try:
        ledger = SaleLedger(db, max_retries=settings.ledger_max_retries)
        return ledger.update_sale(sale_id, sale_data)
    except LedgerError as e:
        raise _ledger_error(e)


@router.delete("/{sale_id}", response_model=Sale)
def delete_sale(
    sale_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Delete a sale and restore its quantity to stock"""
    try:
        ledger = SaleLedger(db, max_retries=settings.ledger_max_retries)
        return ledger.delete_sale(sale_id)
    except LedgerError as e:
        raise _ledger_error(e)
