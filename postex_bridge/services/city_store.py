"""City store port and the in-process adapter.

The store owns one ``CityRecord`` per normalized key. Writers for the same key
are serialized so two bookings racing on a brand new city produce a single row
with both outcomes counted.
"""

import string
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Optional

from postex_bridge.schemas import CityPage, CityRecord, CityStats, CityStatus
from postex_bridge.services.normalizer import normalize
from postex_bridge.utils.logging import get_logger

logger = get_logger(__name__)

# Known-good PostEx destinations, installed as verified on an empty store
DEFAULT_CITIES = [
    "karachi", "lahore", "islamabad", "rawalpindi", "faisalabad",
    "multan", "peshawar", "quetta", "gujranwala", "sialkot",
    "hyderabad", "sargodha", "bahawalpur", "sukkur", "larkana",
    "sheikhupura", "jhang", "rahim yar khan", "gujrat", "kasur",
    "mardan", "mingora", "sahiwal", "nawabshah", "okara",
]

DEFAULT_PER_PAGE = 20


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_city_rows() -> list[tuple[str, str]]:
    """(normalized_key, carrier_format) pairs for seeding."""
    return [(key, string.capwords(key)) for key in DEFAULT_CITIES]


class CityStore(ABC):
    """Abstract interface for city mapping persistence."""

    @abstractmethod
    def lookup(self, key: str) -> Optional[CityRecord]:
        ...

    @abstractmethod
    def record_success(self, raw_name: str, carrier_format: str) -> CityRecord:
        """Promote (or create) the city as verified with ``carrier_format``."""
        ...

    @abstractmethod
    def record_failure(self, raw_name: str) -> CityRecord:
        """Demote (or create) the city as failed."""
        ...

    @abstractmethod
    def list(
        self,
        status: Optional[CityStatus] = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> CityPage:
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        ...

    @abstractmethod
    def force_verify(self, key: str) -> Optional[CityRecord]:
        ...

    @abstractmethod
    def reset(self, key: str) -> Optional[CityRecord]:
        """Put a record back to pending so the next booking re-learns it."""
        ...

    @abstractmethod
    def add(self, raw_name: str, carrier_format: Optional[str] = None) -> CityRecord:
        ...

    @abstractmethod
    def stats(self) -> CityStats:
        ...

    @abstractmethod
    def seed_defaults(self) -> int:
        ...


class MemoryCityStore(CityStore):
    """Dict-backed store with a lock per normalized key."""

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock
        self._rows: dict[str, CityRecord] = {}
        self._guard = threading.Lock()
        self._key_locks: dict[str, list] = {}

    @contextmanager
    def _locked(self, key: str):
        # Entries live only while some writer holds or waits on them
        with self._guard:
            entry = self._key_locks.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._key_locks[key]

    def lookup(self, key):
        row = self._rows.get(normalize(key))
        return row.model_copy() if row else None

    def record_success(self, raw_name, carrier_format):
        key = normalize(raw_name)
        now = self._clock()
        with self._locked(key):
            existing = self._rows.get(key)
            if existing:
                row = existing.model_copy(update={
                    "status": CityStatus.VERIFIED,
                    "carrier_format": carrier_format,
                    "success_count": existing.success_count + 1,
                    "last_used": now,
                })
            else:
                row = CityRecord(
                    normalized_key=key,
                    display_name=raw_name,
                    carrier_format=carrier_format,
                    status=CityStatus.VERIFIED,
                    success_count=1,
                    last_used=now,
                    date_added=now,
                )
            self._rows[key] = row

        logger.info("city_learned", raw_city=raw_name, normalized_key=key, carrier_format=carrier_format)
        return row.model_copy()

    def record_failure(self, raw_name):
        key = normalize(raw_name)
        now = self._clock()
        with self._locked(key):
            existing = self._rows.get(key)
            if existing:
                row = existing.model_copy(update={
                    "status": CityStatus.FAILED,
                    "failure_count": existing.failure_count + 1,
                    "last_used": now,
                })
            else:
                row = CityRecord(
                    normalized_key=key,
                    display_name=raw_name,
                    carrier_format=raw_name,
                    status=CityStatus.FAILED,
                    failure_count=1,
                    last_used=now,
                    date_added=now,
                )
            self._rows[key] = row

        logger.warning("city_failed", raw_city=raw_name, normalized_key=key, failure_count=row.failure_count)
        return row.model_copy()

    def list(self, status=None, page=1, per_page=DEFAULT_PER_PAGE):
        page = max(int(page), 1)
        per_page = max(int(per_page), 1)
        rows = list(self._rows.values())
        if status is not None:
            rows = [r for r in rows if r.status == CityStatus(status)]

        rows.sort(key=lambda r: (
            r.last_used is None,
            -(r.last_used.timestamp() if r.last_used else 0),
            -r.success_count,
        ))
        offset = (page - 1) * per_page
        return CityPage(
            items=[r.model_copy() for r in rows[offset:offset + per_page]],
            total=len(rows),
            page=page,
            per_page=per_page,
        )

    def delete(self, key):
        key = normalize(key)
        with self._locked(key):
            removed = self._rows.pop(key, None)
        if removed:
            logger.info("city_deleted", normalized_key=key)
        return removed is not None

    def force_verify(self, key):
        return self._set_status(normalize(key), CityStatus.VERIFIED)

    def reset(self, key):
        return self._set_status(normalize(key), CityStatus.PENDING)

    def _set_status(self, key, status):
        with self._locked(key):
            existing = self._rows.get(key)
            if not existing:
                return None
            row = self._rows[key] = existing.model_copy(update={"status": status})
        logger.info("city_status_overridden", normalized_key=key, status=status.value)
        return row.model_copy()

    def add(self, raw_name, carrier_format=None):
        key = normalize(raw_name)
        now = self._clock()
        with self._locked(key):
            existing = self._rows.get(key)
            row = CityRecord(
                normalized_key=key,
                display_name=existing.display_name if existing else raw_name.strip(),
                carrier_format=carrier_format or raw_name.strip(),
                status=CityStatus.VERIFIED,
                success_count=max(existing.success_count if existing else 0, 1),
                failure_count=existing.failure_count if existing else 0,
                last_used=existing.last_used if existing else None,
                date_added=existing.date_added if existing else now,
            )
            self._rows[key] = row
        return row.model_copy()

    def stats(self):
        rows = list(self._rows.values())
        return CityStats(
            total=len(rows),
            verified=sum(1 for r in rows if r.status == CityStatus.VERIFIED),
            failed=sum(1 for r in rows if r.status == CityStatus.FAILED),
            pending=sum(1 for r in rows if r.status == CityStatus.PENDING),
        )

    def seed_defaults(self):
        with self._guard:
            if self._rows:
                return 0
            now = self._clock()
            for key, formatted in default_city_rows():
                self._rows[key] = CityRecord(
                    normalized_key=key,
                    display_name=formatted,
                    carrier_format=formatted,
                    status=CityStatus.VERIFIED,
                    success_count=1,
                    date_added=now,
                )
        logger.info("cities_seeded", count=len(DEFAULT_CITIES))
        return len(DEFAULT_CITIES)
