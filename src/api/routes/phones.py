from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List
from src.core.database import get_db
from src.models.database import Phone as DBPhone
from src.models.schemas import Phone, PhoneCreate, PhoneUpdate

router = APIRouter()

@router.get("/", response_model=List[Phone])
def get_phones(db: Session = Depends(get_db)):
    """Get all phones held for resale"""
    return db.query(DBPhone).order_by(DBPhone.id).all()

@router.get("/{phone_id}", response_model=Phone)
def get_phone(phone_id: int, db: Session = Depends(get_db)):
    """Get a specific phone"""
    phone = db.get(DBPhone, phone_id)
    if not phone:
        raise HTTPException(status_code=404, detail="Phone not found")
    return phone

@router.post("/", response_model=Phone, status_code=status.HTTP_201_CREATED)
def create_phone(phone_data: PhoneCreate, db: Session = Depends(get_db)):
    """Add a phone to the resale ledger"""
    existing = db.query(DBPhone).filter(DBPhone.imei == phone_data.imei).first()
    if existing:
        raise HTTPException(status_code=400, detail="IMEI already exists")

    phone = DBPhone(**phone_data.model_dump())
    db.add(phone)
    db.commit()
    db.refresh(phone)
    return phone

@router.put("/{phone_id}", response_model=Phone)
def update_phone(phone_id: int, phone_data: PhoneUpdate, db: Session = Depends(get_db)):
    """Update a phone; its IMEI cannot be changed"""
    phone = db.get(DBPhone, phone_id)
    if not phone:
        raise HTTPException(status_code=404, detail="Phone not found")

    for field, value in phone_data.model_dump(exclude={"imei"}).items():
        setattr(phone, field, value)

    db.commit()
    db.refresh(phone)
    return phone

@router.delete("/{phone_id}", response_model=Phone)
def delete_phone(phone_id: int, db: Session = Depends(get_db)):
    """Remove a phone from the resale ledger"""
    phone = db.get(DBPhone, phone_id)
    if not phone:
        raise HTTPException(status_code=404, detail="Phone not found")
    deleted = Phone.model_validate(phone)
    db.delete(phone)
    db.commit()
    return deleted
