"""Carrier port: the three PostEx operations the core depends on.

Implementations never raise for carrier or transport failures; they return a
``CarrierResult`` with ``error`` set to a classified ``PostExError``.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional, Sequence, Union

from postex_bridge.models import CarrierResult

MAX_DOCUMENTS_PER_REQUEST = 10


class CarrierPort(ABC):
    @abstractmethod
    def create_shipment(self, payload: dict) -> CarrierResult:
        """Book an order. Success carries tracking_number, order_status, order_date."""
        ...

    @abstractmethod
    def list_shipments(self, start: Optional[date] = None, end: Optional[date] = None) -> CarrierResult:
        """Orders known to the carrier in a date window. Success carries ``orders``."""
        ...

    @abstractmethod
    def fetch_documents(self, tracking_numbers: Union[str, Sequence[str]]) -> CarrierResult:
        """Airway bills as one PDF. Success carries ``pdf_data`` and ``filename``."""
        ...
