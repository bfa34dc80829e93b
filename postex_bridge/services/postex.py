import requests
from datetime import date, datetime, timedelta
from typing import Optional
from urllib.parse import quote

import dateutil.parser

from postex_bridge.config import Settings, get_settings
from postex_bridge.errors import CarrierRejection, NetworkError, ValidationError
from postex_bridge.models import CarrierResult
from postex_bridge.services.carrier_port import MAX_DOCUMENTS_PER_REQUEST, CarrierPort
from postex_bridge.utils.logging import get_logger

CREATE_ORDER_PATH = "services/integration/api/order/v3/create-order"
UNBOOKED_ORDERS_PATH = "services/integration/api/order/v2/get-unbooked-orders"
INVOICE_PATH = "services/integration/api/order/v1/get-invoice"

SUCCESS_STATUS_MESSAGE = "SUCCESSFULLY OPERATED"

ERROR_CODES = {
    400: "Bad Request - Please check your order data",
    401: "Unauthorized - Invalid API key",
    403: "Forbidden - Access denied",
    404: "Not Found - Endpoint or resource not available",
    422: "Validation Error - Please check your input data",
    429: "Rate Limit Exceeded - Please try again later",
    500: "Server Error - PostEx service temporarily unavailable",
    502: "Bad Gateway - PostEx service connectivity issue",
    503: "Service Unavailable - PostEx service temporarily down",
    504: "Gateway Timeout - Request took too long",
}

NETWORK_MESSAGE = "Network error: Unable to connect to PostEx service"


def _json_or_none(response):
    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


def classify_http_error(response, context: str, logger=None) -> CarrierRejection:
    """Turn a non-success PostEx response into an operator-facing rejection."""
    logger = logger or get_logger(__name__)
    code = response.status_code
    body = response.text or ""

    user_message = ERROR_CODES.get(code, "An error occurred while communicating with PostEx")
    technical_message = body[:500] or "Unknown error occurred"

    data = _json_or_none(response)
    if data:
        status_message = data.get("statusMessage") or data.get("message")
        if status_message:
            technical_message = status_message
            if status_message != SUCCESS_STATUS_MESSAGE:
                user_message = status_message

    logger.error("postex_api_error", context=context, http_code=code,
                 response=body[:500], error_message=technical_message)
    return CarrierRejection(user_message, technical_message, http_code=code)


def parse_carrier_date(raw) -> Optional[datetime]:
    if not raw:
        return None
    try:
        return dateutil.parser.parse(str(raw))
    except (ValueError, OverflowError):
        return None


class PostExService(CarrierPort):
    """HTTP client for the PostEx merchant integration API. One attempt per call."""

    def __init__(self, settings: Settings | None = None, logger=None):
        self.settings = settings or get_settings()
        self.base_url = self.settings.base_url.rstrip("/") + "/"
        self.logger = logger or get_logger(__name__)

    def _headers(self, accept="application/json", json_body=True):
        headers = {"token": self.settings.api_key, "Accept": accept}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _network_failure(self, exc, context):
        self.logger.error("postex_network_error", context=context, error=str(exc))
        return CarrierResult.failed(NetworkError(NETWORK_MESSAGE, str(exc)))

    def create_shipment(self, payload: dict) -> CarrierResult:
        url = self.base_url + CREATE_ORDER_PATH
        self.logger.info("postex_create_order", order_ref=payload.get("orderRefNumber", "unknown"))

        try:
            response = requests.post(url, json=payload, headers=self._headers(),
                                     timeout=self.settings.create_timeout)
        except requests.RequestException as e:
            return self._network_failure(e, "create_order")

        data = _json_or_none(response) or {}
        dist = data.get("dist") if isinstance(data.get("dist"), dict) else {}
        if response.status_code == 200 and dist.get("trackingNumber"):
            self.logger.info("postex_order_created", tracking_number=dist["trackingNumber"],
                             status=dist.get("orderStatus", "Unknown"))
            return CarrierResult(
                success=True,
                tracking_number=str(dist["trackingNumber"]),
                order_status=dist.get("orderStatus"),
                order_date=dist.get("orderDate"),
            )

        return CarrierResult.failed(classify_http_error(response, "create_order", self.logger))

    def list_shipments(self, start: date | None = None, end: date | None = None) -> CarrierResult:
        window = timedelta(days=self.settings.sync_window_days)
        end = end or date.today()
        start = start or (end - window)

        if start > end:
            return CarrierResult.failed(ValidationError(
                f"startDate {start.isoformat()} is after endDate {end.isoformat()}", ["start", "end"]))
        if end - start > window:
            self.logger.warning("postex_window_clamped", requested_start=start.isoformat(),
                                max_days=self.settings.sync_window_days)
            start = end - window

        url = self.base_url + UNBOOKED_ORDERS_PATH
        params = {"startDate": start.strftime("%Y-%m-%d"), "endDate": end.strftime("%Y-%m-%d")}

        try:
            response = requests.get(url, params=params, headers=self._headers(),
                                    timeout=self.settings.list_timeout)
        except requests.RequestException as e:
            return self._network_failure(e, "list_unbooked")

        if response.status_code != 200:
            return CarrierResult.failed(classify_http_error(response, "list_unbooked", self.logger))

        data = _json_or_none(response) or {}
        orders = data.get("data") or data.get("orders") or data.get("dist") or []
        if isinstance(orders, dict):
            orders = [orders]
        return CarrierResult(success=True, orders=list(orders))

    def fetch_documents(self, tracking_numbers) -> CarrierResult:
        if isinstance(tracking_numbers, str):
            tracking_numbers = [tracking_numbers]
        numbers = [str(tn).strip() for tn in tracking_numbers if str(tn).strip()]
        if not numbers:
            return CarrierResult.failed(ValidationError("No tracking numbers provided", ["tracking_numbers"]))

        if len(numbers) > MAX_DOCUMENTS_PER_REQUEST:
            self.logger.warning("postex_documents_truncated", requested=len(numbers),
                                dropped=numbers[MAX_DOCUMENTS_PER_REQUEST:])
            numbers = numbers[:MAX_DOCUMENTS_PER_REQUEST]

        # PostEx expects literal commas, so the query string is built by hand
        encoded = ",".join(quote(tn, safe="") for tn in numbers)
        url = f"{self.base_url}{INVOICE_PATH}?trackingNumbers={encoded}"

        try:
            response = requests.get(url, headers=self._headers(accept="application/pdf", json_body=False),
                                    timeout=self.settings.document_timeout)
        except requests.RequestException as e:
            return self._network_failure(e, "download_awb")

        content_type = (response.headers.get("Content-Type") or "").lower()
        if response.status_code == 200 and ("pdf" in content_type or "application/octet-stream" in content_type):
            return CarrierResult(
                success=True,
                pdf_data=response.content,
                filename=f"postex-airway-bills-{datetime.now().strftime('%Y-%m-%d-%H-%M-%S')}.pdf",
            )

        return CarrierResult.failed(classify_http_error(response, "download_awb", self.logger))
