from typing import List, Optional

from fastapi import APIRouter, Depends

from app.core.authorization import Permission, require_permission
from app.database import SessionLocal
from app.deps.auth import AuthContext, require_auth
from app.schemas.order import (
    OrderCreate,
    OrderDetailResponse,
    OrderResponse,
    OrderStatusUpdate,
    OrderUpdate,
    PrimaryContactAssign,
)
from app.services import order_service

router = APIRouter(prefix="/orders", tags=["Orders"])


@router.get("", response_model=List[OrderResponse])
def list_orders(
    status: Optional[str] = None,
    _auth: AuthContext = Depends(require_permission(Permission.ORDERS_READ)),
):
    db = SessionLocal()
    try:
        return order_service.list_orders(db=db, status=status)
    finally:
        db.close()


@router.get("/{order_id}", response_model=OrderDetailResponse)
def get_order(
    order_id: str,
    _auth: AuthContext = Depends(require_permission(Permission.ORDERS_READ)),
):
    db = SessionLocal()
    try:
        order = order_service.get_order(order_id, db=db)
        return OrderDetailResponse.model_validate(order)
    finally:
        db.close()


@router.post("", response_model=OrderDetailResponse)
def create_order(
    payload: OrderCreate,
    _auth: AuthContext = Depends(require_permission(Permission.ORDERS_WRITE)),
):
    db = SessionLocal()
    try:
        order = order_service.create_order(
            customer_id=payload.customer_id,
            sd_pay_delta_rate=payload.sd_pay_delta_rate,
            sd_bill_delta_rate=payload.sd_bill_delta_rate,
            trade_requirements=[tr.model_dump() for tr in payload.trade_requirements],
            db=db,
        )
        return OrderDetailResponse.model_validate(order)
    finally:
        db.close()


@router.patch("/{order_id}/status", response_model=OrderResponse)
def update_status(
    order_id: str,
    payload: OrderStatusUpdate,
    auth: AuthContext = Depends(require_auth),
):
    # per-transition permission is enforced by the service after validation
    return order_service.update_order_status(order_id, payload.status, auth.permissions)


@router.patch("/{order_id}/primary-contact", response_model=OrderResponse)
def assign_primary_contact(
    order_id: str,
    payload: PrimaryContactAssign,
    _auth: AuthContext = Depends(require_permission(Permission.ORDERS_WRITE)),
):
    db = SessionLocal()
    try:
        return order_service.assign_primary_contact(order_id, payload.contact_id, db=db)
    finally:
        db.close()


@router.patch("/{order_id}", response_model=OrderResponse)
def update_order(
    order_id: str,
    payload: OrderUpdate,
    _auth: AuthContext = Depends(require_permission(Permission.ORDERS_WRITE)),
):
    db = SessionLocal()
    try:
        changes = {field: getattr(payload, field) for field in payload.model_fields_set}
        return order_service.update_order(order_id, db=db, **changes)
    finally:
        db.close()
