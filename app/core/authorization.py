from enum import Enum
from typing import Iterable, Optional, Union

from fastapi import Depends, HTTPException, Request

from app.core.errors import PermissionDeniedError
from app.deps.auth import AuthContext, require_auth


class Role(Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


class Permission:
    ORDERS_READ = "orders.read"
    ORDERS_WRITE = "orders.write"
    CUSTOMERS_READ = "customers.read"
    CUSTOMERS_WRITE = "customers.write"


def assert_has_permissions(
    user_permissions: Optional[Iterable[str]],
    required: Union[str, Iterable[str]],
    context: Optional[str] = None,
) -> None:
    """Raise PermissionDeniedError listing every required permission the caller lacks."""
    effective = set(user_permissions or [])
    required_list = [required] if isinstance(required, str) else list(required)

    missing = [perm for perm in required_list if perm not in effective]
    if missing:
        ctx = f" ({context})" if context else ""
        raise PermissionDeniedError(f"Missing required permission(s): {', '.join(missing)}{ctx}")


def require_role(role: Role):
    def dependency(request: Request, auth: AuthContext = Depends(require_auth)):
        claim_role = auth.role
        if not claim_role:
            claim_role = "MANAGER"

        try:
            user_role = Role(str(claim_role).upper())
        except ValueError as exc:
            raise HTTPException(status_code=403, detail="Invalid role claim") from exc

        rank = {
            Role.EMPLOYEE: 1,
            Role.MANAGER: 2,
            Role.ADMIN: 3,
        }

        if rank[user_role] < rank[role]:
            raise HTTPException(status_code=403, detail="Insufficient role")

        request.state.role = user_role.value
        return auth

    return dependency


def require_permission(permission: str):
    def dependency(auth: AuthContext = Depends(require_auth)):
        try:
            assert_has_permissions(auth.permissions, permission)
        except PermissionDeniedError as exc:
            raise HTTPException(status_code=403, detail=str(exc)) from exc
        return auth

    return dependency
