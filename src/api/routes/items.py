import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from src.core.config import Settings, get_settings
from src.core.database import get_db
from src.models.database import InventoryRecord, Item as DBItem
from src.models.schemas import Item, ItemCreate, ItemUpdate

logger = logging.getLogger(__name__)

router = APIRouter()

def _sku_taken(db: Session, sku: str, exclude_id: int = None) -> bool:
    query = db.query(DBItem).filter(DBItem.sku == sku)
    if exclude_id is not None:
        query = query.filter(DBItem.id != exclude_id)
    return query.first() is not None

@router.get("/", response_model=List[Item])
def get_items(db: Session = Depends(get_db)):
    """Get all catalog items"""
    return db.query(DBItem).order_by(DBItem.category, DBItem.name).all()

@router.get("/category/{category}", response_model=List[Item])
def get_items_by_category(category: str, db: Session = Depends(get_db)):
    """Get the items of one category"""
    return db.query(DBItem).filter(DBItem.category == category).order_by(DBItem.name).all()

@router.get("/{item_id}", response_model=Item)
def get_item(item_id: int, db: Session = Depends(get_db)):
    """Get a specific item"""
    item = db.get(DBItem, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    return item

@router.post("/", response_model=Item, status_code=status.HTTP_201_CREATED)
def create_item(
    item_data: ItemCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Create a catalog item together with its inventory record"""
    if item_data.sku and _sku_taken(db, item_data.sku):
        raise HTTPException(status_code=400, detail="SKU already exists")

    fields = item_data.model_dump(exclude={"quantity", "min_stock_level"})
    item = DBItem(**fields)
    min_stock_level = item_data.min_stock_level
    if min_stock_level is None:
        min_stock_level = settings.default_min_stock_level
    item.inventory = InventoryRecord(quantity=item_data.quantity, min_stock_level=min_stock_level)
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info(f"Created item {item.id} ({item.name}) with {item_data.quantity} in stock")
    return item

@router.put("/{item_id}", response_model=Item)
def update_item(item_id: int, item_data: ItemUpdate, db: Session = Depends(get_db)):
    """Update an item's catalog details; stock is changed through the inventory API"""
    item = db.get(DBItem, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    if item_data.sku and _sku_taken(db, item_data.sku, exclude_id=item_id):
        raise HTTPException(status_code=400, detail="SKU already exists")

    for field, value in item_data.model_dump().items():
        setattr(item, field, value)

    db.commit()
    db.refresh(item)
    return item

@router.delete("/{item_id}", response_model=Item)
def delete_item(item_id: int, db: Session = Depends(get_db)):
    """
    Delete an item and its inventory record.

    Sales of the item are kept with their item reference cleared.
    """
    item = db.get(DBItem, item_id)
    if not item:
        raise HTTPException(status_code=404, detail="Item not found")
    deleted = Item.model_validate(item)
    db.delete(item)
    db.commit()
    logger.info(f"Deleted item {item_id} ({deleted.name})")
    return deleted
