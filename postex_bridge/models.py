from dataclasses import asdict, dataclass, field
from typing import Optional

from postex_bridge.errors import PostExError
from postex_bridge.schemas import CityRecord


@dataclass
class CarrierResult:
    """Outcome of one carrier call. Exactly one of the payload fields or ``error`` is meaningful."""
    success: bool
    tracking_number: Optional[str] = None
    order_status: Optional[str] = None
    order_date: Optional[str] = None
    orders: list = field(default_factory=list)
    pdf_data: Optional[bytes] = None
    filename: Optional[str] = None
    error: Optional[PostExError] = None

    @classmethod
    def failed(cls, error: PostExError) -> "CarrierResult":
        return cls(success=False, error=error)


@dataclass
class CityResolution:
    raw_city: str
    normalized_key: str
    carrier_format: str
    is_verified: bool
    record: Optional[CityRecord] = None


@dataclass
class BookingAttempt:
    normalized_key: str
    carrier_format: str
    is_verified: bool
    outcome: str  # accepted | rejected
    error_text: Optional[str] = None

    def to_dict(self):
        return asdict(self)


@dataclass
class BookingResult:
    success: bool
    tracking_number: Optional[str] = None
    order_status: Optional[str] = None
    order_date: Optional[str] = None
    resolution: Optional[CityResolution] = None
    attempt: Optional[BookingAttempt] = None
    error: Optional[PostExError] = None


@dataclass
class SyncReport:
    checked: int = 0
    matched: int = 0
    updated: int = 0
    skipped: bool = False
    error: Optional[str] = None

    def to_dict(self):
        return asdict(self)
