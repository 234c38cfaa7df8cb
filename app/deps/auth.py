from dataclasses import dataclass, field
from typing import List, Optional

from fastapi import HTTPException, Request

from app.services.auth_service import verify_token


@dataclass(frozen=True)
class AuthContext:
    user_id: str
    role: Optional[str]
    permissions: List[str] = field(default_factory=list)


def _parse_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="Missing Authorization header")

    parts = auth_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise HTTPException(status_code=401, detail="Invalid Authorization header")

    return parts[1].strip()


def require_auth(request: Request) -> AuthContext:
    token = _parse_bearer_token(request)

    try:
        claims = verify_token(token)
    except ValueError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    auth = AuthContext(
        user_id=str(claims.get("sub")),
        role=claims.get("role"),
        permissions=list(claims.get("permissions") or []),
    )

    request.state.user_id = auth.user_id
    request.state.permissions = auth.permissions

    return auth
