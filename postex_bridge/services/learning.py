"""Self-learning city mapping.

``resolve`` picks the string PostEx should receive for a user-entered city and
``learn`` feeds the booking outcome back into the store. Only unverified
guesses are learned from; a verified mapping is never written by a booking.
An operator ``reset`` on the store makes a verified city learnable again.
"""

from postex_bridge.errors import CarrierRejection, CityBlocked
from postex_bridge.models import CarrierResult, CityResolution
from postex_bridge.schemas import CityStatus
from postex_bridge.services.city_store import CityStore
from postex_bridge.services.normalizer import guess_carrier_format, normalize
from postex_bridge.utils.logging import get_logger

# A rejection mentioning one of these is blamed on the city
CITY_ERROR_KEYWORDS = ("city", "delivery")


def is_city_error(error) -> bool:
    if not isinstance(error, CarrierRejection):
        return False
    text = f"{error.user_message} {error.technical_message}".lower()
    return any(kw in text for kw in CITY_ERROR_KEYWORDS)


class LearningEngine:
    def __init__(self, store: CityStore, learning_enabled: bool = True, logger=None):
        self.store = store
        self.learning_enabled = learning_enabled
        self.logger = logger or get_logger(__name__)

    def resolve(self, raw_city: str) -> CityResolution:
        """Map ``raw_city`` to a carrier format.

        Raises:
            CityBlocked: the city is recorded as failed. No booking should be attempted.
        """
        raw_city = (raw_city or "").strip()
        key = normalize(raw_city)
        record = self.store.lookup(key)

        if record is None:
            resolution = CityResolution(
                raw_city=raw_city,
                normalized_key=key,
                carrier_format=guess_carrier_format(key),
                is_verified=False,
            )
        elif record.status == CityStatus.FAILED:
            self.logger.warning("city_blocked", raw_city=raw_city, normalized_key=key,
                                failure_count=record.failure_count)
            raise CityBlocked(raw_city, record.failure_count)
        else:
            resolution = CityResolution(
                raw_city=raw_city,
                normalized_key=key,
                carrier_format=record.carrier_format,
                is_verified=record.status == CityStatus.VERIFIED,
                record=record,
            )

        self.logger.debug("city_resolved", raw_city=raw_city, normalized_key=key,
                          carrier_format=resolution.carrier_format, is_verified=resolution.is_verified,
                          in_store=record is not None)
        return resolution

    def learn(self, resolution: CityResolution, result: CarrierResult) -> str | None:
        """Record the booking outcome. Returns "success", "failure" or None when nothing was written."""
        if resolution.is_verified or not self.learning_enabled:
            return None

        if result.success:
            self.store.record_success(resolution.raw_city, resolution.carrier_format)
            return "success"

        if is_city_error(result.error):
            self.store.record_failure(resolution.raw_city)
            return "failure"

        return None
