from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.order import OrderStatus


class TradeRequirementCreate(BaseModel):
    trade_id: str = Field(min_length=1)
    priority: Optional[str] = None
    enforcement: Optional[str] = None
    notes: Optional[str] = None
    base_pay_rate: Optional[Decimal] = None
    base_bill_rate: Optional[Decimal] = None


class OrderCreate(BaseModel):
    customer_id: str = Field(min_length=1)
    sd_pay_delta_rate: Optional[Decimal] = None
    sd_bill_delta_rate: Optional[Decimal] = None
    trade_requirements: List[TradeRequirementCreate] = Field(default_factory=list)


class OrderUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    customer_id: Optional[str] = None
    sd_pay_delta_rate: Optional[Decimal] = None
    sd_bill_delta_rate: Optional[Decimal] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class PrimaryContactAssign(BaseModel):
    contact_id: Optional[str] = None


class TradeRequirementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    trade_id: str
    priority: Optional[str]
    enforcement: Optional[str]
    notes: Optional[str]
    base_pay_rate: Optional[Decimal]
    base_bill_rate: Optional[Decimal]


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: str
    status: OrderStatus
    primary_customer_contact_id: Optional[str]
    sd_pay_delta_rate: Optional[Decimal]
    sd_bill_delta_rate: Optional[Decimal]
    created_at: datetime
    updated_at: datetime


class OrderDetailResponse(OrderResponse):
    trade_requirements: List[TradeRequirementResponse]
