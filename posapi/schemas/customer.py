from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import date, datetime


class CustomerCreate(BaseModel):
    """New customer / member. member_id is generated when omitted."""

    member_id: Optional[str] = Field(None, max_length=50)
    name: str = Field(..., min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    join_date: Optional[date] = None
    opening_debt: int = Field(0, ge=0, description="Debt carried over from before")

    @field_validator("name")
    @classmethod
    def name_must_not_be_blank(cls, v: str) -> str:
        if v.strip() == "":
            raise ValueError("Name cannot be empty")
        return v.strip()


class CustomerUpdate(BaseModel):
    member_id: Optional[str] = Field(None, min_length=1, max_length=50)
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    join_date: Optional[date] = None


class CustomerResponse(BaseModel):
    id: int
    member_id: str
    name: str
    phone: Optional[str] = None
    address: Optional[str] = None
    total_spent: int = 0
    debt: int = 0
    last_visit: Optional[datetime] = None
    join_date: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
