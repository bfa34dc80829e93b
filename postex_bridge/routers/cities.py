from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from postex_bridge.dependencies import get_city_store
from postex_bridge.schemas import CityCreate, CityRecord, CityStats, CityStatus
from postex_bridge.services.city_store import DEFAULT_PER_PAGE, CityStore

router = APIRouter(prefix="/cities", tags=["Cities"])


@router.get("")
def list_cities(
    status: Optional[CityStatus] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(DEFAULT_PER_PAGE, ge=1, le=200),
    store: CityStore = Depends(get_city_store),
):
    result = store.list(status=status, page=page, per_page=per_page)
    return {
        "items": [c.model_dump(mode="json") for c in result.items],
        "total": result.total,
        "page": result.page,
        "per_page": result.per_page,
        "total_pages": result.total_pages,
    }


@router.get("/stats", response_model=CityStats)
def city_stats(store: CityStore = Depends(get_city_store)):
    return store.stats()


@router.get("/{name}", response_model=CityRecord)
def get_city(name: str, store: CityStore = Depends(get_city_store)):
    record = store.lookup(name)
    if not record:
        raise HTTPException(status_code=404, detail=f"City '{name}' is not in the store")
    return record


@router.post("", response_model=CityRecord, status_code=201)
def add_city(body: CityCreate, store: CityStore = Depends(get_city_store)):
    return store.add(body.city_name, body.carrier_format)


@router.post("/{name}/verify", response_model=CityRecord)
def verify_city(name: str, store: CityStore = Depends(get_city_store)):
    record = store.force_verify(name)
    if not record:
        raise HTTPException(status_code=404, detail=f"City '{name}' is not in the store")
    return record


@router.post("/{name}/reset", response_model=CityRecord)
def reset_city(name: str, store: CityStore = Depends(get_city_store)):
    record = store.reset(name)
    if not record:
        raise HTTPException(status_code=404, detail=f"City '{name}' is not in the store")
    return record


@router.delete("/{name}")
def delete_city(name: str, store: CityStore = Depends(get_city_store)):
    if not store.delete(name):
        raise HTTPException(status_code=404, detail=f"City '{name}' is not in the store")
    return {"status": "deleted", "city": name}
