"""Supabase-backed adapters for the city and shipment stores.

Table layout and the two learning functions live in ``supabase/schema.sql``.
Learning writes go through those functions so the insert-or-increment is a
single statement on the database side.
"""

from supabase import Client

from postex_bridge.schemas import CityPage, CityRecord, CityStats, CityStatus, ShipmentNote, ShipmentOrder
from postex_bridge.services.city_store import DEFAULT_PER_PAGE, CityStore, default_city_rows, utcnow
from postex_bridge.services.normalizer import normalize
from postex_bridge.services.shipment_store import ShipmentStore
from postex_bridge.utils.logging import get_logger

logger = get_logger(__name__)

CITIES_TABLE = "postex_cities"
SHIPMENTS_TABLE = "postex_shipments"
NOTES_TABLE = "postex_shipment_notes"


def _get_single(rowset):
    return rowset[0] if rowset else None


def _to_city(row) -> CityRecord | None:
    return CityRecord.model_validate(row) if row else None


class SupabaseCityStore(CityStore):
    def __init__(self, db: Client):
        self.db = db

    def lookup(self, key):
        resp = (
            self.db.table(CITIES_TABLE)
            .select("*")
            .eq("normalized_key", normalize(key))
            .limit(1)
            .execute()
        )
        return _to_city(_get_single(resp.data))

    def record_success(self, raw_name, carrier_format):
        key = normalize(raw_name)
        resp = self.db.rpc("postex_record_city_success", {
            "p_display_name": raw_name,
            "p_normalized_key": key,
            "p_carrier_format": carrier_format,
        }).execute()
        logger.info("city_learned", raw_city=raw_name, normalized_key=key, carrier_format=carrier_format)
        return _to_city(_get_single(resp.data))

    def record_failure(self, raw_name):
        key = normalize(raw_name)
        resp = self.db.rpc("postex_record_city_failure", {
            "p_display_name": raw_name,
            "p_normalized_key": key,
        }).execute()
        row = _to_city(_get_single(resp.data))
        logger.warning("city_failed", raw_city=raw_name, normalized_key=key,
                       failure_count=row.failure_count if row else None)
        return row

    def list(self, status=None, page=1, per_page=DEFAULT_PER_PAGE):
        page = max(int(page), 1)
        per_page = max(int(per_page), 1)
        offset = (page - 1) * per_page

        query = self.db.table(CITIES_TABLE).select("*", count="exact")
        if status is not None:
            query = query.eq("status", CityStatus(status).value)
        resp = (
            query
            .order("last_used", desc=True, nullsfirst=False)
            .order("success_count", desc=True)
            .range(offset, offset + per_page - 1)
            .execute()
        )
        return CityPage(
            items=[CityRecord.model_validate(r) for r in (resp.data or [])],
            total=resp.count or 0,
            page=page,
            per_page=per_page,
        )

    def delete(self, key):
        key = normalize(key)
        resp = self.db.table(CITIES_TABLE).delete().eq("normalized_key", key).execute()
        if resp.data:
            logger.info("city_deleted", normalized_key=key)
        return bool(resp.data)

    def force_verify(self, key):
        return self._set_status(normalize(key), CityStatus.VERIFIED)

    def reset(self, key):
        return self._set_status(normalize(key), CityStatus.PENDING)

    def _set_status(self, key, status):
        resp = (
            self.db.table(CITIES_TABLE)
            .update({"status": status.value})
            .eq("normalized_key", key)
            .execute()
        )
        row = _to_city(_get_single(resp.data))
        if row:
            logger.info("city_status_overridden", normalized_key=key, status=status.value)
        return row

    def add(self, raw_name, carrier_format=None):
        key = normalize(raw_name)
        carrier_format = carrier_format or raw_name.strip()
        existing = self.lookup(key)
        if existing:
            resp = (
                self.db.table(CITIES_TABLE)
                .update({
                    "status": CityStatus.VERIFIED.value,
                    "carrier_format": carrier_format,
                    "success_count": max(existing.success_count, 1),
                })
                .eq("normalized_key", key)
                .execute()
            )
        else:
            resp = self.db.table(CITIES_TABLE).insert({
                "display_name": raw_name.strip(),
                "normalized_key": key,
                "carrier_format": carrier_format,
                "status": CityStatus.VERIFIED.value,
                "success_count": 1,
                "date_added": utcnow().isoformat(),
            }).execute()
        return _to_city(_get_single(resp.data))

    def stats(self):
        resp = self.db.table(CITIES_TABLE).select("status").execute()
        stats = CityStats()
        for row in (resp.data or []):
            stats.total += 1
            status = row.get("status")
            if status in (CityStatus.VERIFIED.value, CityStatus.FAILED.value, CityStatus.PENDING.value):
                setattr(stats, status, getattr(stats, status) + 1)
        return stats

    def seed_defaults(self):
        resp = self.db.table(CITIES_TABLE).select("id", count="exact").limit(1).execute()
        if resp.count:
            return 0

        now_iso = utcnow().isoformat()
        rows = [
            {
                "display_name": formatted,
                "normalized_key": key,
                "carrier_format": formatted,
                "status": CityStatus.VERIFIED.value,
                "success_count": 1,
                "date_added": now_iso,
            }
            for key, formatted in default_city_rows()
        ]
        resp = (
            self.db.table(CITIES_TABLE)
            .upsert(rows, on_conflict="normalized_key", ignore_duplicates=True)
            .execute()
        )
        inserted = len(resp.data or [])
        logger.info("cities_seeded", count=inserted)
        return inserted


class SupabaseShipmentStore(ShipmentStore):
    def __init__(self, db: Client):
        self.db = db

    def save(self, order):
        self.db.table(SHIPMENTS_TABLE).upsert(
            order.model_dump(mode="json"), on_conflict="tracking_number"
        ).execute()
        return order

    def get(self, tracking_number):
        resp = (
            self.db.table(SHIPMENTS_TABLE)
            .select("*")
            .eq("tracking_number", tracking_number)
            .limit(1)
            .execute()
        )
        row = _get_single(resp.data)
        return ShipmentOrder.model_validate(row) if row else None

    def find_by_tracking_numbers(self, tracking_numbers):
        numbers = list(dict.fromkeys(tracking_numbers))
        if not numbers:
            return {}
        resp = self.db.table(SHIPMENTS_TABLE).select("*").in_("tracking_number", numbers).execute()
        orders = [ShipmentOrder.model_validate(r) for r in (resp.data or [])]
        return {o.tracking_number: o for o in orders}

    def update_status(self, tracking_number, carrier_status, synced_at):
        self.db.table(SHIPMENTS_TABLE).update({
            "carrier_status": carrier_status,
            "last_synced_at": synced_at.isoformat(),
        }).eq("tracking_number", tracking_number).execute()

    def add_note(self, tracking_number, note):
        entry = ShipmentNote(tracking_number=tracking_number, note=note, created_at=utcnow())
        self.db.table(NOTES_TABLE).insert(entry.model_dump(mode="json")).execute()
        return entry

    def notes(self, tracking_number):
        resp = (
            self.db.table(NOTES_TABLE)
            .select("tracking_number, note, created_at")
            .eq("tracking_number", tracking_number)
            .order("created_at")
            .execute()
        )
        return [ShipmentNote.model_validate(r) for r in (resp.data or [])]
