from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from src.core.database import get_db
from src.models.database import Customer as DBCustomer
from src.models.schemas import Customer, CustomerCreate, CustomerUpdate

router = APIRouter()

@router.get("/", response_model=List[Customer])
def get_customers(db: Session = Depends(get_db)):
    """Get all customers, newest first"""
    return db.query(DBCustomer).order_by(DBCustomer.created_at.desc(), DBCustomer.id.desc()).all()

@router.get("/{customer_id}", response_model=Customer)
def get_customer(customer_id: int, db: Session = Depends(get_db)):
    """Get a specific customer"""
    customer = db.get(DBCustomer, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer

@router.post("/", response_model=Customer, status_code=status.HTTP_201_CREATED)
def create_customer(customer_data: CustomerCreate, db: Session = Depends(get_db)):
    """Create a new customer"""
    customer = DBCustomer(**customer_data.model_dump())
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return customer

@router.put("/{customer_id}", response_model=Customer)
def update_customer(customer_id: int, customer_data: CustomerUpdate, db: Session = Depends(get_db)):
    """Update a customer"""
    customer = db.get(DBCustomer, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")

    for field, value in customer_data.model_dump().items():
        setattr(customer, field, value)

    db.commit()
    db.refresh(customer)
    return customer

@router.delete("/{customer_id}", response_model=Customer)
def delete_customer(customer_id: int, db: Session = Depends(get_db)):
    """Delete a customer; their sales are kept as walk-in sales"""
    customer = db.get(DBCustomer, customer_id)
    if not customer:
        raise HTTPException(status_code=404, detail="Customer not found")
    deleted = Customer.model_validate(customer)
    db.delete(customer)
    db.commit()
    return deleted
