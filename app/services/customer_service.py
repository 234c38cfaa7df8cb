from typing import List, Optional

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.models.customer import Customer, CustomerContact


def create_customer(*, name: str, db: Session) -> Customer:
    if not name or not name.strip():
        raise ValidationError("name is required")

    row = Customer(name=name.strip())
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def get_customer(customer_id: str, *, db: Session) -> Customer:
    row = db.query(Customer).filter(Customer.id == str(customer_id)).first()
    if row is None:
        raise NotFoundError("Customer not found")
    return row


def list_customers(*, db: Session) -> List[Customer]:
    return db.query(Customer).order_by(Customer.name.asc(), Customer.id.asc()).all()


def create_contact(
    customer_id: str,
    *,
    first_name: str,
    last_name: str,
    db: Session,
    email: Optional[str] = None,
    office_phone: Optional[str] = None,
    cell_phone: Optional[str] = None,
    job_title: Optional[str] = None,
    is_active: bool = True,
) -> CustomerContact:
    get_customer(customer_id, db=db)

    row = CustomerContact(
        customer_id=str(customer_id),
        first_name=first_name,
        last_name=last_name,
        email=email,
        office_phone=office_phone,
        cell_phone=cell_phone,
        job_title=job_title,
        is_active=is_active,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row


def list_contacts(customer_id: str, *, db: Session, active_only: bool = False) -> List[CustomerContact]:
    get_customer(customer_id, db=db)

    q = db.query(CustomerContact).filter(CustomerContact.customer_id == str(customer_id))
    if active_only:
        q = q.filter(CustomerContact.is_active.is_(True))
    return q.order_by(CustomerContact.last_name.asc(), CustomerContact.first_name.asc()).all()
