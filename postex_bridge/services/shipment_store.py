"""Tracking metadata for booked orders: the ShipmentOrder port and its in-process adapter."""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Iterable, Optional

from postex_bridge.schemas import ShipmentNote, ShipmentOrder


class ShipmentStore(ABC):
    @abstractmethod
    def save(self, order: ShipmentOrder) -> ShipmentOrder:
        """Insert or replace by tracking number."""
        ...

    @abstractmethod
    def get(self, tracking_number: str) -> Optional[ShipmentOrder]:
        ...

    @abstractmethod
    def find_by_tracking_numbers(self, tracking_numbers: Iterable[str]) -> dict[str, ShipmentOrder]:
        ...

    @abstractmethod
    def update_status(self, tracking_number: str, carrier_status: str, synced_at: datetime) -> None:
        ...

    @abstractmethod
    def add_note(self, tracking_number: str, note: str) -> ShipmentNote:
        ...

    @abstractmethod
    def notes(self, tracking_number: str) -> list[ShipmentNote]:
        ...


class MemoryShipmentStore(ShipmentStore):
    def __init__(self):
        self._orders: dict[str, ShipmentOrder] = {}
        self._notes: dict[str, list[ShipmentNote]] = {}
        self._lock = threading.Lock()

    def save(self, order):
        with self._lock:
            self._orders[order.tracking_number] = order.model_copy()
        return order

    def get(self, tracking_number):
        order = self._orders.get(tracking_number)
        return order.model_copy() if order else None

    def find_by_tracking_numbers(self, tracking_numbers):
        wanted = set(tracking_numbers)
        return {tn: o.model_copy() for tn, o in self._orders.items() if tn in wanted}

    def update_status(self, tracking_number, carrier_status, synced_at):
        with self._lock:
            order = self._orders.get(tracking_number)
            if order is None:
                return
            self._orders[tracking_number] = order.model_copy(update={
                "carrier_status": carrier_status,
                "last_synced_at": synced_at,
            })

    def add_note(self, tracking_number, note):
        entry = ShipmentNote(tracking_number=tracking_number, note=note, created_at=datetime.now(timezone.utc))
        with self._lock:
            self._notes.setdefault(tracking_number, []).append(entry)
        return entry

    def notes(self, tracking_number):
        return list(self._notes.get(tracking_number, []))
