from typing import List

from fastapi import APIRouter, Depends

from app.core.authorization import Permission, require_permission
from app.database import SessionLocal
from app.deps.auth import AuthContext
from app.schemas.customer import ContactCreate, ContactResponse, CustomerCreate, CustomerResponse
from app.services import customer_service

router = APIRouter(prefix="/customers", tags=["Customers"])


@router.post("", response_model=CustomerResponse)
def create_customer(
    payload: CustomerCreate,
    _auth: AuthContext = Depends(require_permission(Permission.CUSTOMERS_WRITE)),
):
    db = SessionLocal()
    try:
        return customer_service.create_customer(name=payload.name, db=db)
    finally:
        db.close()


@router.get("", response_model=List[CustomerResponse])
def list_customers(
    _auth: AuthContext = Depends(require_permission(Permission.CUSTOMERS_READ)),
):
    db = SessionLocal()
    try:
        return customer_service.list_customers(db=db)
    finally:
        db.close()


@router.get("/{customer_id}", response_model=CustomerResponse)
def get_customer(
    customer_id: str,
    _auth: AuthContext = Depends(require_permission(Permission.CUSTOMERS_READ)),
):
    db = SessionLocal()
    try:
        return customer_service.get_customer(customer_id, db=db)
    finally:
        db.close()


@router.post("/{customer_id}/contacts", response_model=ContactResponse)
def create_contact(
    customer_id: str,
    payload: ContactCreate,
    _auth: AuthContext = Depends(require_permission(Permission.CUSTOMERS_WRITE)),
):
    db = SessionLocal()
    try:
        return customer_service.create_contact(customer_id, db=db, **payload.model_dump())
    finally:
        db.close()


@router.get("/{customer_id}/contacts", response_model=List[ContactResponse])
def list_contacts(
    customer_id: str,
    active_only: bool = False,
    _auth: AuthContext = Depends(require_permission(Permission.CUSTOMERS_READ)),
):
    db = SessionLocal()
    try:
        return customer_service.list_contacts(customer_id, db=db, active_only=active_only)
    finally:
        db.close()
