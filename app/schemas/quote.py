from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.quote import QuoteStatus


class QuoteCreate(BaseModel):
    customer_id: Optional[str] = None
    title: str = Field(min_length=1, max_length=255)
    state: str = Field(min_length=2, max_length=2)


class QuoteLineUpsert(BaseModel):
    trade_id: str = Field(min_length=1)
    base_rate: Decimal = Field(ge=0)


class QuoteLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    trade_id: str
    base_rate: Decimal


class QuoteHeaderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: Optional[str]
    title: str
    state: str
    status: QuoteStatus
    created_at: datetime
    updated_at: datetime


class SnapshotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    quote_id: str
    input_hash: str
    payload: Dict[str, Any]
    created_at: datetime


class QuoteDetailResponse(QuoteHeaderResponse):
    lines: List[QuoteLineResponse]
    latest_snapshot: Optional[SnapshotResponse]
