from fastapi import APIRouter, Depends
from fastapi.responses import Response

from postex_bridge.dependencies import get_carrier
from postex_bridge.routers.http_errors import to_http_exception
from postex_bridge.schemas import AirwayBillRequest
from postex_bridge.services.carrier_port import CarrierPort

router = APIRouter(prefix="/airway-bills", tags=["Airway Bills"])


@router.post("")
def download_airway_bills(body: AirwayBillRequest, carrier: CarrierPort = Depends(get_carrier)):
    result = carrier.fetch_documents(body.tracking_numbers)
    if not result.success:
        raise to_http_exception(result.error)

    return Response(
        content=result.pdf_data,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{result.filename}"',
            "Cache-Control": "no-cache, must-revalidate",
        },
    )
