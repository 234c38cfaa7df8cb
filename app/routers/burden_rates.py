from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.core.authorization import Role, require_role
from app.database import SessionLocal
from app.deps.auth import AuthContext
from app.schemas.burden_rate import (
    BootstrapResponse,
    BurdenRateAuditResponse,
    BurdenRateCreate,
    BurdenRateDeleteResponse,
    BurdenRateResponse,
    BurdenRateUpdate,
    ResolvedBurdenResponse,
)
from app.services import burden_admin
from app.services.burden_resolver import normalize_effective_at, resolve_burden_rates

router = APIRouter(prefix="/payroll-burden-rates", tags=["Payroll Burden"])


@router.get("", response_model=List[BurdenRateResponse])
def list_rates(
    level: Optional[str] = None,
    category: Optional[str] = None,
    worker_id: Optional[str] = None,
    location_id: Optional[str] = None,
    state_code: Optional[str] = None,
    _auth: AuthContext = Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        return burden_admin.list_burden_rates(
            db=db,
            level=level,
            category=category,
            worker_id=worker_id,
            location_id=location_id,
            state_code=state_code,
        )
    finally:
        db.close()


@router.get("/resolve", response_model=ResolvedBurdenResponse)
def resolve_rates(
    worker_id: Optional[str] = None,
    location_id: Optional[str] = None,
    state_code: Optional[str] = Query(default=None, min_length=2, max_length=2),
    effective_at: Optional[datetime] = None,
    _auth: AuthContext = Depends(require_role(Role.MANAGER)),
):
    at = normalize_effective_at(effective_at)
    rates = resolve_burden_rates(
        worker_id=worker_id,
        location_id=location_id,
        state_code=state_code,
        effective_at=at,
    )
    return {
        "effective_at": at,
        "rates": rates,
        "total_burden_percent": sum(rates.values(), Decimal("0")),
    }


@router.post("", response_model=BurdenRateResponse)
def create_rate(
    payload: BurdenRateCreate,
    auth: AuthContext = Depends(require_role(Role.ADMIN)),
):
    return burden_admin.create_burden_rate(
        level=payload.level,
        category=payload.category,
        effective_date=payload.effective_date,
        rate_percent=payload.rate_percent,
        worker_id=payload.worker_id,
        location_id=payload.location_id,
        state_code=payload.state_code,
        actor_user_id=auth.user_id,
    )


@router.post("/bootstrap", response_model=BootstrapResponse)
def bootstrap_rates(_auth: AuthContext = Depends(require_role(Role.ADMIN))):
    return burden_admin.bootstrap_system_user_and_seed_rates()


@router.patch("/{rate_id}", response_model=BurdenRateResponse)
def update_rate(
    rate_id: str,
    payload: BurdenRateUpdate,
    auth: AuthContext = Depends(require_role(Role.ADMIN)),
):
    return burden_admin.update_burden_rate(
        rate_id,
        rate_percent=payload.rate_percent,
        effective_date=payload.effective_date,
        actor_user_id=auth.user_id,
    )


@router.delete("/{rate_id}", response_model=BurdenRateDeleteResponse)
def delete_rate(
    rate_id: str,
    auth: AuthContext = Depends(require_role(Role.ADMIN)),
):
    return burden_admin.delete_burden_rate(rate_id, actor_user_id=auth.user_id)


@router.get("/{rate_id}/audits", response_model=List[BurdenRateAuditResponse])
def list_rate_audits(
    rate_id: str,
    _auth: AuthContext = Depends(require_role(Role.ADMIN)),
):
    db = SessionLocal()
    try:
        return burden_admin.list_burden_rate_audits(rate_id, db=db)
    finally:
        db.close()
