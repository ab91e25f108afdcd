from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


# Customers

class CustomerBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=50)
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    product: Optional[str] = None
    repair: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    note: Optional[str] = None
    status: Optional[str] = None

class CustomerCreate(CustomerBase):
    pass

class CustomerUpdate(CustomerBase):
    pass

class Customer(CustomerBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


# Catalog

class ItemBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=50)
    price: Decimal = Field(..., ge=0)
    cost: Decimal = Field(..., ge=0)
    sku: Optional[str] = None

class ItemCreate(ItemBase):
    quantity: int = Field(0, ge=0)
    min_stock_level: Optional[int] = Field(None, ge=0)

class ItemUpdate(ItemBase):
    pass

class Item(ItemBase):
    id: int
    created_at: datetime

    class Config:
        from_attributes = True


# Inventory

class InventoryUpdate(BaseModel):
    quantity: Optional[int] = Field(None, ge=0)
    min_stock_level: Optional[int] = Field(None, ge=0)

class InventoryRecord(BaseModel):
    id: int
    item_id: int
    item_name: str
    sku: Optional[str] = None
    category: str
    price: Decimal
    quantity: int
    min_stock_level: int
    version: int
    last_updated: datetime
    stock_status: str

class InventorySummary(BaseModel):
    total_items: int
    total_quantity: int
    in_stock: int
    low_stock: int
    out_of_stock: int
    stock_value: Decimal

class InventorySummaryResponse(BaseModel):
    summary: InventorySummary


# Sales

class SaleBase(BaseModel):
    customer_id: Optional[int] = None
    item_id: int
    quantity: int = Field(..., ge=1)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)
    payment_method: Optional[str] = None
    notes: Optional[str] = None

class SaleCreate(SaleBase):
    pass

class SaleUpdate(SaleBase):
    pass

class Sale(BaseModel):
    id: int
    customer_id: Optional[int] = None
    item_id: Optional[int] = None
    quantity: int
    unit_price: Decimal
    total_amount: Decimal
    sale_date: datetime
    payment_method: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        from_attributes = True

class SaleDetail(Sale):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    item_name: Optional[str] = None
    sku: Optional[str] = None


# Phone resale ledger

class PhoneBase(BaseModel):
    brand: str = Field(..., min_length=1, max_length=50)
    model: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    status: Optional[str] = None

class PhoneCreate(PhoneBase):
    imei: str = Field(..., min_length=1, max_length=50)

class PhoneUpdate(PhoneBase):
    # Accepted for form round-trips; the stored IMEI is never changed
    imei: Optional[str] = None

class Phone(PhoneBase):
    id: int
    imei: str
    created_at: datetime

    class Config:
        from_attributes = True
