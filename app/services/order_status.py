"""
Order lifecycle rules.

ORDER_STATUS_TRANSITIONS is the single source of truth for which status
changes exist. Each edge maps to the permission required to take it.
"""
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from app.core.authorization import Permission, assert_has_permissions
from app.core.errors import ValidationError
from app.models.order import OrderStatus

ORDER_STATUS_TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    OrderStatus.DRAFT: frozenset({OrderStatus.NEEDS_TO_BE_FILLED, OrderStatus.CANCELLED}),
    OrderStatus.NEEDS_TO_BE_FILLED: frozenset({OrderStatus.FILLED, OrderStatus.CANCELLED}),
    OrderStatus.FILLED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

DEFAULT_TRANSITION_PERMISSION = Permission.ORDERS_WRITE

ORDER_STATUS_TRANSITION_PERMISSIONS: Dict[Tuple[OrderStatus, OrderStatus], str] = {
    (OrderStatus.DRAFT, OrderStatus.NEEDS_TO_BE_FILLED): Permission.ORDERS_WRITE,
    (OrderStatus.DRAFT, OrderStatus.CANCELLED): Permission.ORDERS_WRITE,
    (OrderStatus.NEEDS_TO_BE_FILLED, OrderStatus.FILLED): Permission.ORDERS_WRITE,
    (OrderStatus.NEEDS_TO_BE_FILLED, OrderStatus.CANCELLED): Permission.ORDERS_WRITE,
    (OrderStatus.FILLED, OrderStatus.COMPLETED): Permission.ORDERS_WRITE,
}


def validate_order_status_transition(current: OrderStatus, next_status: OrderStatus) -> None:
    allowed = ORDER_STATUS_TRANSITIONS.get(current)
    if allowed is None:
        raise ValidationError(f"Invalid current order status: {current}")

    if next_status not in allowed:
        raise ValidationError(
            f"Cannot transition order from {current.value} to {next_status.value}"
        )


def validate_status_change(current: OrderStatus, next_status: OrderStatus) -> OrderStatus:
    if current == next_status:
        raise ValidationError("Order is already in the requested status")

    validate_order_status_transition(current, next_status)
    return next_status


def required_transition_permission(current: OrderStatus, next_status: OrderStatus) -> str:
    return ORDER_STATUS_TRANSITION_PERMISSIONS.get((current, next_status), DEFAULT_TRANSITION_PERMISSION)


def check_transition_permission(
    current: OrderStatus,
    next_status: OrderStatus,
    user_permissions: Optional[Iterable[str]],
) -> None:
    assert_has_permissions(
        user_permissions,
        required_transition_permission(current, next_status),
        f"order status transition {current.value} -> {next_status.value}",
    )
