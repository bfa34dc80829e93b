from fastapi import HTTPException

from postex_bridge.errors import PostExError

STATUS_BY_KIND = {
    "validation": 422,
    "city_blocked": 409,
    "carrier_rejection": 502,
    "network": 503,
}


def to_http_exception(error: PostExError | None) -> HTTPException:
    if error is None:
        return HTTPException(status_code=500, detail={"error": "Unknown error"})
    return HTTPException(status_code=STATUS_BY_KIND.get(error.kind, 500), detail=error.to_dict())
