"""Process-wide service instances, built lazily from ``Settings``.

Routers take these through ``Depends`` so tests can swap them with
``app.dependency_overrides``.
"""

from postex_bridge.config import get_settings
from postex_bridge.services.booking import BookingService
from postex_bridge.services.learning import LearningEngine
from postex_bridge.services.reconciler import StatusReconciler
from postex_bridge.services.scheduler import SyncScheduler

_instances = {}


def get_city_store():
    if "city_store" not in _instances:
        settings = get_settings()
        if settings.store_backend == "supabase":
            from postex_bridge.services.supabase_client import get_supabase
            from postex_bridge.services.supabase_store import SupabaseCityStore

            store = SupabaseCityStore(get_supabase(settings))
        else:
            from postex_bridge.services.city_store import MemoryCityStore

            store = MemoryCityStore()
        store.seed_defaults()
        _instances["city_store"] = store
    return _instances["city_store"]


def get_shipment_store():
    if "shipment_store" not in _instances:
        settings = get_settings()
        if settings.store_backend == "supabase":
            from postex_bridge.services.supabase_client import get_supabase
            from postex_bridge.services.supabase_store import SupabaseShipmentStore

            _instances["shipment_store"] = SupabaseShipmentStore(get_supabase(settings))
        else:
            from postex_bridge.services.shipment_store import MemoryShipmentStore

            _instances["shipment_store"] = MemoryShipmentStore()
    return _instances["shipment_store"]


def get_carrier():
    if "carrier" not in _instances:
        settings = get_settings()
        if settings.carrier_adapter == "fake":
            from postex_bridge.services.fake_carrier import FakePostEx

            _instances["carrier"] = FakePostEx()
        else:
            from postex_bridge.services.postex import PostExService

            _instances["carrier"] = PostExService(settings)
    return _instances["carrier"]


def get_learning_engine():
    if "learning" not in _instances:
        _instances["learning"] = LearningEngine(get_city_store(), learning_enabled=get_settings().learning_enabled)
    return _instances["learning"]


def get_booking_service():
    if "booking" not in _instances:
        _instances["booking"] = BookingService(
            carrier=get_carrier(),
            learning=get_learning_engine(),
            shipments=get_shipment_store(),
            settings=get_settings(),
        )
    return _instances["booking"]


def get_reconciler():
    if "reconciler" not in _instances:
        _instances["reconciler"] = StatusReconciler(
            get_carrier(), get_shipment_store(), window_days=get_settings().sync_window_days
        )
    return _instances["reconciler"]


def get_scheduler():
    if "scheduler" not in _instances:
        _instances["scheduler"] = SyncScheduler(get_reconciler(), interval_hours=get_settings().sync_interval_hours)
    return _instances["scheduler"]


def reset_services():
    """Drop every cached instance (useful for testing)."""
    scheduler = _instances.get("scheduler")
    if scheduler is not None:
        scheduler.shutdown()
    _instances.clear()
    get_settings.cache_clear()
