"""Fake PostEx adapter: deterministic carrier for tests and local development.

Records every call so callers can assert on what was (or was not) sent.
"""

from datetime import datetime, timezone
from uuid import uuid4

from postex_bridge.errors import CarrierRejection, NetworkError
from postex_bridge.models import CarrierResult
from postex_bridge.services.carrier_port import MAX_DOCUMENTS_PER_REQUEST, CarrierPort


class FakePostEx(CarrierPort):
    """Succeeds by default. ``configure`` switches it to rejecting or timing out."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Service unavailable"
        self.network_down = False
        self.shipments: list[dict] = []
        self.calls: dict[str, list] = {"create_shipment": [], "list_shipments": [], "fetch_documents": []}

    def configure(self, should_succeed: bool = True, failure_reason: str = "Service unavailable",
                  network_down: bool = False):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.network_down = network_down

    def call_count(self, operation: str) -> int:
        return len(self.calls[operation])

    def set_shipments(self, shipments: list[dict]):
        """Replace what ``list_shipments`` reports, e.g. ``[{"trackingNumber": ..., "transactionStatus": ...}]``."""
        self.shipments = [dict(s) for s in shipments]

    def _failure(self):
        if self.network_down:
            return CarrierResult.failed(NetworkError("Network error: Unable to connect to PostEx service",
                                                     "Read timed out"))
        return CarrierResult.failed(CarrierRejection(self.failure_reason, self.failure_reason, http_code=400))

    def create_shipment(self, payload):
        self.calls["create_shipment"].append(payload)
        if self.network_down or not self.should_succeed:
            return self._failure()

        tracking_number = f"FAKE{uuid4().hex[:10].upper()}"
        self.shipments.append({"trackingNumber": tracking_number, "transactionStatus": "Unbooked"})
        return CarrierResult(
            success=True,
            tracking_number=tracking_number,
            order_status="Unbooked",
            order_date=datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S"),
        )

    def list_shipments(self, start=None, end=None):
        self.calls["list_shipments"].append((start, end))
        if self.network_down or not self.should_succeed:
            return self._failure()
        return CarrierResult(success=True, orders=[dict(s) for s in self.shipments])

    def fetch_documents(self, tracking_numbers):
        if isinstance(tracking_numbers, str):
            tracking_numbers = [tracking_numbers]
        numbers = list(tracking_numbers)[:MAX_DOCUMENTS_PER_REQUEST]
        self.calls["fetch_documents"].append(numbers)
        if self.network_down or not self.should_succeed:
            return self._failure()
        return CarrierResult(
            success=True,
            pdf_data=b"%PDF-1.4\n% fake airway bills: " + ",".join(numbers).encode() + b"\n%%EOF",
            filename="postex-airway-bills-fake.pdf",
        )
