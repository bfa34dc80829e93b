from datetime import datetime, timezone

import pydantic

from postex_bridge.config import Settings
from postex_bridge.errors import CityBlocked, ValidationError
from postex_bridge.models import BookingAttempt, BookingResult, CityResolution
from postex_bridge.schemas import BookingRequest, ShipmentOrder
from postex_bridge.services.carrier_port import CarrierPort
from postex_bridge.services.learning import LearningEngine
from postex_bridge.services.postex import parse_carrier_date
from postex_bridge.services.shipment_store import ShipmentStore
from postex_bridge.utils.logging import get_logger

DEFAULT_DIMENSIONS = (15, 10, 5)


def parse_dimensions(raw: str | None, fallback: str) -> dict:
    """Parse "LxWxH" (cm) into the PostEx dimensions object. Missing parts use 15/10/5."""
    parts = [p.strip() for p in (raw or fallback or "").lower().split("x") if p.strip()]
    values = list(DEFAULT_DIMENSIONS)
    for i, part in enumerate(parts[:3]):
        try:
            values[i] = int(float(part))
        except (ValueError, OverflowError):
            raise ValidationError(f"Invalid dimensions '{raw}', expected LxWxH", ["dimensions"])
        if values[i] <= 0:
            raise ValidationError(f"Invalid dimensions '{raw}', values must be positive", ["dimensions"])
    return {"length": values[0], "width": values[1], "height": values[2]}


class BookingService:
    """Validate -> resolve city -> create shipment -> learn -> store tracking."""

    def __init__(
        self,
        carrier: CarrierPort,
        learning: LearningEngine,
        shipments: ShipmentStore,
        settings: Settings,
        logger=None,
    ):
        self.carrier = carrier
        self.learning = learning
        self.shipments = shipments
        self.settings = settings
        self.logger = logger or get_logger(__name__)

    def validate(self, request) -> BookingRequest:
        if not isinstance(request, BookingRequest):
            try:
                request = BookingRequest.model_validate(request)
            except pydantic.ValidationError as e:
                fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
                raise ValidationError(f"Invalid booking data: {', '.join(fields)}", fields) from e

        if self.settings.carrier_adapter != "fake" and not self.settings.api_key:
            raise ValidationError("PostEx API key not configured", ["api_key"])
        if not (request.pickup_address_code or self.settings.pickup_address_code):
            raise ValidationError("Pickup Address Code not configured", ["pickup_address_code"])
        return request

    def build_payload(self, booking: BookingRequest, city_format: str) -> dict:
        return {
            "orderRefNumber": booking.order_ref_number,
            "orderType": booking.order_type,
            "invoicePayment": booking.invoice_payment,
            "weight": booking.weight if booking.weight is not None else self.settings.default_weight,
            "customerName": booking.customer_name,
            "customerPhone": booking.customer_phone,
            "deliveryAddress": booking.delivery_address,
            "cityName": city_format,
            "pickupAddressCode": booking.pickup_address_code or self.settings.pickup_address_code,
            "dimensions": parse_dimensions(booking.dimensions, self.settings.default_dimensions),
            "orderDetails": booking.order_details,
        }

    def book(self, request) -> BookingResult:
        try:
            booking = self.validate(request)
            payload_base = self.build_payload(booking, "")
            resolution = self.learning.resolve(booking.city_name)
        except (ValidationError, CityBlocked) as e:
            self.logger.warning("booking_rejected_locally", kind=e.kind, error=e.user_message)
            return BookingResult(success=False, error=e)

        payload = {**payload_base, "cityName": resolution.carrier_format}
        result = self.carrier.create_shipment(payload)
        self._learn(resolution, result)

        attempt = BookingAttempt(
            normalized_key=resolution.normalized_key,
            carrier_format=resolution.carrier_format,
            is_verified=resolution.is_verified,
            outcome="accepted" if result.success else "rejected",
            error_text=None if result.success else result.error.technical_message,
        )
        self.logger.info("booking_attempt", order_ref=booking.order_ref_number, **attempt.to_dict())

        if not result.success:
            return BookingResult(success=False, resolution=resolution, attempt=attempt, error=result.error)

        self._store_tracking(booking, resolution, result)
        return BookingResult(
            success=True,
            tracking_number=result.tracking_number,
            order_status=result.order_status,
            order_date=result.order_date,
            resolution=resolution,
            attempt=attempt,
        )

    def _learn(self, resolution: CityResolution, result):
        try:
            self.learning.learn(resolution, result)
        except Exception:
            # The carrier outcome stands even if the store is unreachable
            self.logger.exception("city_learning_failed", normalized_key=resolution.normalized_key)

    def _store_tracking(self, booking, resolution, result):
        order = ShipmentOrder(
            order_ref=booking.order_ref_number,
            tracking_number=result.tracking_number,
            carrier_status=result.order_status,
            city_name=resolution.raw_city,
            order_date=parse_carrier_date(result.order_date),
            last_synced_at=datetime.now(timezone.utc),
        )
        try:
            self.shipments.save(order)
            self.shipments.add_note(
                result.tracking_number,
                f"PostEx order created – Tracking: {result.tracking_number} Status: {result.order_status}",
            )
        except Exception:
            self.logger.exception("tracking_save_failed", tracking_number=result.tracking_number,
                                  order_ref=booking.order_ref_number)
