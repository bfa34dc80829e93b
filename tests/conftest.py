import os

import pytest

os.environ.setdefault("ENVIRONMENT", "test")

from postex_bridge.config import Settings  # noqa: E402
from postex_bridge.services.booking import BookingService  # noqa: E402
from postex_bridge.services.city_store import MemoryCityStore  # noqa: E402
from postex_bridge.services.fake_carrier import FakePostEx  # noqa: E402
from postex_bridge.services.learning import LearningEngine  # noqa: E402
from postex_bridge.services.reconciler import StatusReconciler  # noqa: E402
from postex_bridge.services.shipment_store import MemoryShipmentStore  # noqa: E402


@pytest.fixture()
def settings():
    return Settings(
        api_key="test-token",
        pickup_address_code="LHR-001",
        base_url="https://api.postex.test/",
        scheduler_enabled=False,
    )


@pytest.fixture()
def city_store():
    return MemoryCityStore()


@pytest.fixture()
def seeded_store(city_store):
    city_store.seed_defaults()
    return city_store


@pytest.fixture()
def shipment_store():
    return MemoryShipmentStore()


@pytest.fixture()
def carrier():
    return FakePostEx()


@pytest.fixture()
def learning(city_store):
    return LearningEngine(city_store)


@pytest.fixture()
def booking_service(carrier, learning, shipment_store, settings):
    return BookingService(carrier=carrier, learning=learning, shipments=shipment_store, settings=settings)


@pytest.fixture()
def reconciler(carrier, shipment_store):
    return StatusReconciler(carrier, shipment_store, window_days=30)


@pytest.fixture()
def booking_data():
    """Factory for a valid booking payload; keyword overrides replace fields."""

    def make(**overrides) -> dict:
        data = {
            "order_ref_number": "1001",
            "customer_name": "Ali Khan",
            "customer_phone": "03001234567",
            "delivery_address": "House 12, Street 4",
            "city_name": "Karachi",
            "invoice_payment": 1500,
            "weight": 2.5,
            "order_details": "2x Kurta",
        }
        data.update(overrides)
        return data

    return make
