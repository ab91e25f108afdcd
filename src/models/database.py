from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Customer(Base):
    """Shop customer, including the repair intake details"""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50))
    email = Column(String(100))
    phone = Column(String(20))
    address = Column(Text)
    product = Column(String(100))
    repair = Column(String(100))
    price = Column(Numeric(10, 2))
    note = Column(Text)
    status = Column(String(50))
    created_at = Column(DateTime, default=utcnow)

    sales = relationship("Sale", back_populates="customer")


class Item(Base):
    """Catalog entry: a product or a repair service"""
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text)
    category = Column(String(50), nullable=False, index=True)
    price = Column(Numeric(10, 2), nullable=False)
    cost = Column(Numeric(10, 2), nullable=False)
    sku = Column(String(50), unique=True, index=True)
    created_at = Column(DateTime, default=utcnow)

    inventory = relationship(
        "InventoryRecord",
        back_populates="item",
        uselist=False,
        cascade="all, delete-orphan",
    )
    sales = relationship("Sale", back_populates="item")


class InventoryRecord(Base):
    """Stock count paired one-to-one with an item"""
    __tablename__ = "inventory"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), unique=True, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    min_stock_level = Column(Integer, nullable=False, default=10)
    version = Column(Integer, nullable=False, default=1)  # For optimistic locking
    last_updated = Column(DateTime, default=utcnow)

    item = relationship("Item", back_populates="inventory")


class Sale(Base):
    """A sale debiting one item's stock at a captured unit price"""
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    sale_date = Column(DateTime, default=utcnow, index=True)
    payment_method = Column(String(50))
    notes = Column(Text)
    version = Column(Integer, nullable=False, default=1)  # For optimistic locking

    customer = relationship("Customer", back_populates="sales")
    item = relationship("Item", back_populates="sales")


class Phone(Base):
    """Second-hand handset held for resale"""
    __tablename__ = "phones"

    id = Column(Integer, primary_key=True, index=True)
    brand = Column(String(50), nullable=False)
    model = Column(String(100), nullable=False)
    color = Column(String(50))
    imei = Column(String(50), unique=True, index=True, nullable=False)
    price = Column(Numeric(10, 2))
    status = Column(String(50))
    created_at = Column(DateTime, default=utcnow)
