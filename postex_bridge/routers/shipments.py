from fastapi import APIRouter, Depends

from postex_bridge.dependencies import get_booking_service
from postex_bridge.routers.http_errors import to_http_exception
from postex_bridge.schemas import BookingRequest, BookingResponse
from postex_bridge.services.booking import BookingService

router = APIRouter(prefix="/shipments", tags=["Shipments"])


@router.post("", response_model=BookingResponse)
def create_shipment(booking: BookingRequest, service: BookingService = Depends(get_booking_service)):
    result = service.book(booking)
    if not result.success:
        raise to_http_exception(result.error)

    return BookingResponse(
        status="success",
        tracking_number=result.tracking_number,
        order_status=result.order_status,
        order_date=result.order_date,
        city_format=result.resolution.carrier_format,
        city_verified=result.resolution.is_verified,
    )
