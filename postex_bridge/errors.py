"""Failure taxonomy shared by the booking core, the carrier client and the routers."""


class PostExError(Exception):
    """Base class. ``user_message`` is safe to show an operator as-is."""

    kind = "error"

    def __init__(self, user_message: str, technical_message: str | None = None, http_code: int = 0):
        super().__init__(user_message)
        self.user_message = user_message
        self.technical_message = technical_message or user_message
        self.http_code = http_code

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "error": self.user_message,
            "technical_error": self.technical_message,
            "code": self.http_code,
        }


class NetworkError(PostExError):
    """Transport failure: DNS, connect, TLS or timeout."""

    kind = "network"


class CarrierRejection(PostExError):
    """The carrier answered with something other than a success envelope."""

    kind = "carrier_rejection"


class CityBlocked(PostExError):
    kind = "city_blocked"

    def __init__(self, raw_city: str, failure_count: int):
        message = (
            f"City '{raw_city}' has failed {failure_count} time(s) in PostEx API. "
            "Please verify the city name or contact PostEx support."
        )
        super().__init__(message)
        self.raw_city = raw_city
        self.failure_count = failure_count

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({"city_issue": True, "failure_count": self.failure_count})
        return data


class ValidationError(PostExError):
    """Booking input rejected before any network call."""

    kind = "validation"

    def __init__(self, user_message: str, fields: list[str] | None = None):
        super().__init__(user_message)
        self.fields = fields or []

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["fields"] = self.fields
        return data
