from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, ValidationError
from app.database import SessionLocal, utcnow
from app.models.customer import Customer, CustomerContact
from app.models.hours_entry import HoursApprovalStatus, HoursEntry
from app.models.invoice import Invoice
from app.models.order import Order, OrderStatus, OrderTradeRequirement
from app.services.order_status import check_transition_permission, validate_status_change

logger = logging.getLogger(__name__)

_UNSET = object()


def _get_order(db: Session, order_id: str, *, for_update: bool = False) -> Order:
    q = db.query(Order).filter(Order.id == str(order_id))
    if for_update:
        q = q.with_for_update()
    order = q.first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _require_customer(db: Session, customer_id: str) -> Customer:
    customer = db.query(Customer).filter(Customer.id == str(customer_id)).first()
    if customer is None:
        raise ValidationError("Customer not found")
    return customer


def _has_hours_with_status(db: Session, order_id: str, status: HoursApprovalStatus) -> bool:
    row = (
        db.query(HoursEntry.id)
        .filter(HoursEntry.order_id == str(order_id), HoursEntry.approval_status == status)
        .first()
    )
    return row is not None


def _has_invoice(db: Session, order_id: str) -> bool:
    return db.query(Invoice.id).filter(Invoice.order_id == str(order_id)).first() is not None


def assert_order_can_complete(db: Session, order_id: str) -> None:
    if _has_hours_with_status(db, order_id, HoursApprovalStatus.PENDING):
        raise ValidationError("Cannot complete order: hours are pending approval")

    if _has_hours_with_status(db, order_id, HoursApprovalStatus.REJECTED):
        raise ValidationError("Cannot complete order: rejected hours must be resolved")

    if not _has_invoice(db, order_id):
        raise ValidationError("Cannot complete order: invoice does not exist")


def update_order_status(
    order_id: str,
    next_status: Any,
    user_permissions: Optional[Iterable[str]],
    db: Optional[Session] = None,
) -> Order:
    """
    Load -> validate transition (400) -> check permission (403) -> completion
    gate (400) -> write, all inside one transaction with the order row locked.
    """
    try:
        target = OrderStatus(next_status)
    except ValueError as exc:
        raise ValidationError(f"Invalid order status: {next_status}") from exc

    owns_db = db is None
    if owns_db:
        db = SessionLocal()

    try:
        order = _get_order(db, order_id, for_update=True)
        current = OrderStatus(order.status)

        validate_status_change(current, target)
        check_transition_permission(current, target, user_permissions)

        if target == OrderStatus.COMPLETED:
            assert_order_can_complete(db, order.id)

        order.status = target
        order.updated_at = utcnow()
        db.flush()

        if owns_db:
            db.commit()

        logger.info(
            "order_status_changed",
            extra={"order_id": order.id, "from_status": current.value, "to_status": target.value},
        )
        return order
    except Exception:
        if owns_db:
            db.rollback()
        raise
    finally:
        if owns_db:
            db.close()


def create_order(
    *,
    customer_id: str,
    db: Session,
    sd_pay_delta_rate: Optional[Decimal] = None,
    sd_bill_delta_rate: Optional[Decimal] = None,
    trade_requirements: Optional[List[Dict[str, Any]]] = None,
) -> Order:
    """Create an order header (always DRAFT) and its trade requirements in one transaction."""
    try:
        _require_customer(db, customer_id)

        order = Order(
            customer_id=str(customer_id),
            status=OrderStatus.DRAFT,
            sd_pay_delta_rate=sd_pay_delta_rate,
            sd_bill_delta_rate=sd_bill_delta_rate,
        )
        db.add(order)
        db.flush()

        for tr in trade_requirements or []:
            if not tr.get("trade_id"):
                raise ValidationError("trade_id is required for each trade requirement")
            db.add(
                OrderTradeRequirement(
                    order_id=order.id,
                    trade_id=str(tr["trade_id"]),
                    priority=tr.get("priority"),
                    enforcement=tr.get("enforcement"),
                    notes=tr.get("notes"),
                    base_pay_rate=tr.get("base_pay_rate"),
                    base_bill_rate=tr.get("base_bill_rate"),
                )
            )

        db.commit()
        db.refresh(order)
        logger.info("order_created", extra={"order_id": order.id, "customer_id": order.customer_id})
        return order
    except Exception:
        db.rollback()
        raise


def get_order(order_id: str, *, db: Session) -> Order:
    return _get_order(db, order_id)


def list_orders(*, db: Session, status: Optional[str] = None) -> List[Order]:
    q = db.query(Order)
    if status is not None:
        try:
            q = q.filter(Order.status == OrderStatus(status))
        except ValueError as exc:
            raise ValidationError(f"Invalid order status: {status}") from exc
    return q.order_by(Order.created_at.desc(), Order.id.desc()).all()


def update_order(
    order_id: str,
    *,
    db: Session,
    customer_id: Optional[str] = None,
    sd_pay_delta_rate: Any = _UNSET,
    sd_bill_delta_rate: Any = _UNSET,
) -> Order:
    """Non-status fields only; status changes go through update_order_status."""
    try:
        order = _get_order(db, order_id, for_update=True)

        if customer_id:
            _require_customer(db, customer_id)
            order.customer_id = str(customer_id)
        if sd_pay_delta_rate is not _UNSET:
            order.sd_pay_delta_rate = sd_pay_delta_rate
        if sd_bill_delta_rate is not _UNSET:
            order.sd_bill_delta_rate = sd_bill_delta_rate

        order.updated_at = utcnow()
        db.commit()
        db.refresh(order)
        return order
    except Exception:
        db.rollback()
        raise


def assign_primary_contact(order_id: str, contact_id: Optional[str], *, db: Session) -> Order:
    """Set or clear (None) the order's primary customer contact."""
    try:
        order = _get_order(db, order_id, for_update=True)

        if contact_id is not None:
            contact = db.query(CustomerContact).filter(CustomerContact.id == str(contact_id)).first()
            if contact is None:
                raise ValidationError("Customer contact not found")
            if contact.customer_id != order.customer_id:
                raise ValidationError("Contact does not belong to this order's customer")
            if not contact.is_active:
                raise ValidationError("Cannot assign inactive contact as primary")

        order.primary_customer_contact_id = contact_id
        order.updated_at = utcnow()
        db.commit()
        db.refresh(order)
        return order
    except Exception:
        db.rollback()
        raise
