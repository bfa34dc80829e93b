# schemas.py
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class CityStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class CityRecord(BaseModel):
    normalized_key: str = Field(..., min_length=1)
    display_name: str
    carrier_format: str
    status: CityStatus = CityStatus.PENDING
    success_count: int = Field(0, ge=0)
    failure_count: int = Field(0, ge=0)
    last_used: Optional[datetime] = None
    date_added: Optional[datetime] = None


class CityStats(BaseModel):
    total: int = 0
    verified: int = 0
    failed: int = 0
    pending: int = 0


class CityPage(BaseModel):
    items: list[CityRecord]
    total: int
    page: int
    per_page: int

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return -(-self.total // self.per_page)


class ShipmentOrder(BaseModel):
    """Tracking metadata for a shop order booked with PostEx."""
    order_ref: str
    tracking_number: str = Field(..., min_length=1)
    carrier_status: Optional[str] = None
    local_status: Optional[str] = None
    city_name: Optional[str] = None
    order_date: Optional[datetime] = None
    last_synced_at: Optional[datetime] = None


class ShipmentNote(BaseModel):
    tracking_number: str
    note: str
    created_at: datetime


class BookingRequest(BaseModel):
    order_ref_number: str = Field(..., min_length=1)
    customer_name: str = Field(..., min_length=1)
    customer_phone: str = Field(..., min_length=1)
    delivery_address: str = Field(..., min_length=1)
    city_name: str = Field(..., min_length=1)
    invoice_payment: float = Field(..., gt=0)
    weight: Optional[float] = Field(None, gt=0)
    dimensions: Optional[str] = None
    order_type: str = "Normal"
    order_details: str = ""
    pickup_address_code: Optional[str] = None

    @field_validator(
        "order_ref_number", "customer_name", "customer_phone", "delivery_address", "city_name",
        mode="before",
    )
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        return v.strip() if isinstance(v, str) else v


# --- HTTP surface ---

class CityCreate(BaseModel):
    city_name: str = Field(..., min_length=1)
    carrier_format: Optional[str] = None


class AirwayBillRequest(BaseModel):
    tracking_numbers: list[str] = Field(..., min_length=1)


class BookingResponse(BaseModel):
    status: str
    tracking_number: str
    order_status: Optional[str] = None
    order_date: Optional[str] = None
    city_format: str
    city_verified: bool
