from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from src.core.config import Settings, get_settings
from src.core.database import get_db
from src.models.schemas import InventoryRecord, InventorySummaryResponse, InventoryUpdate
from src.services.errors import ConflictError, NotFoundError
from src.services.inventory_service import InventoryService

router = APIRouter()

@router.get("/", response_model=List[InventoryRecord])
def get_inventory(db: Session = Depends(get_db)):
    """Get every item's stock with its computed status"""
    return InventoryService(db).list_inventory()

@router.get("/low-stock", response_model=List[InventoryRecord])
def get_low_stock(db: Session = Depends(get_db)):
    """Get items that are low on stock or out of stock"""
    return InventoryService(db).low_stock()

@router.get("/summary", response_model=InventorySummaryResponse)
def get_inventory_summary(db: Session = Depends(get_db)):
    """Get stock counts by status for the dashboard"""
    return {"summary": InventoryService(db).summary()}

@router.get("/{item_id}", response_model=InventoryRecord)
def get_inventory_record(item_id: int, db: Session = Depends(get_db)):
    """Get the stock record of a specific item"""
    try:
        return InventoryService(db).get_record(item_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

@router.put("/{item_id}", response_model=InventoryRecord)
def update_inventory_record(
    item_id: int,
    changes: InventoryUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Restock or recount an item, or change its low-stock threshold"""
    try:
        service = InventoryService(db, max_retries=settings.ledger_max_retries)
        return service.adjust_stock(item_id, changes)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
