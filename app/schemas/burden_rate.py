from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from app.models.burden_rate import BurdenAuditAction, BurdenCategory, BurdenLevel


class BurdenRateCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: str
    category: str
    # ISO date string, parsed (and rejected) by the service
    effective_date: str
    rate_percent: Any
    worker_id: Optional[str] = None
    location_id: Optional[str] = None
    state_code: Optional[str] = None


class BurdenRateUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    rate_percent: Optional[Any] = None
    effective_date: Optional[str] = None


class BurdenRateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    level: BurdenLevel
    category: BurdenCategory
    effective_date: datetime
    rate_percent: Decimal
    worker_id: Optional[str]
    location_id: Optional[str]
    state_code: Optional[str]
    created_by_user_id: str
    updated_by_user_id: str
    created_at: datetime
    updated_at: datetime


class BurdenRateAuditResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    burden_rate_id: str
    action: BurdenAuditAction
    before: Optional[Dict[str, Any]]
    after: Optional[Dict[str, Any]]
    created_by_user_id: str
    created_at: datetime


class BurdenRateDeleteResponse(BaseModel):
    ok: bool
    id: str


class ResolvedBurdenResponse(BaseModel):
    effective_at: datetime
    rates: Dict[str, Decimal]
    total_burden_percent: Decimal


class BootstrapResponse(BaseModel):
    system_user_id: str
    user_created: bool
    inserted: List[str]
    skipped: List[str]
