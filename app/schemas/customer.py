from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CustomerCreate(BaseModel):
    name: str = Field(min_length=1)


class CustomerResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_at: datetime


class ContactCreate(BaseModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: Optional[str] = None
    office_phone: Optional[str] = None
    cell_phone: Optional[str] = None
    job_title: Optional[str] = None
    is_active: bool = True


class ContactResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    customer_id: str
    first_name: str
    last_name: str
    email: Optional[str]
    office_phone: Optional[str]
    cell_phone: Optional[str]
    job_title: Optional[str]
    is_active: bool
    created_at: datetime
