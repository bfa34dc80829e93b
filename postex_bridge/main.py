from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from postex_bridge.config import get_settings
from postex_bridge.dependencies import get_city_store, get_scheduler, reset_services
from postex_bridge.routers.airway_bills import router as airway_bills_router
from postex_bridge.routers.cities import router as cities_router
from postex_bridge.routers.shipments import router as shipments_router
from postex_bridge.routers.sync import router as sync_router
from postex_bridge.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    settings = get_settings()
    if not settings.is_configured:
        logger.warning("postex_not_configured", missing="api_key and/or pickup_address_code")

    get_city_store()  # seeds an empty store
    if settings.scheduler_enabled:
        get_scheduler().start()
    yield
    reset_services()


app = FastAPI(title="PostEx Bridge", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(shipments_router)
app.include_router(cities_router)
app.include_router(airway_bills_router)
app.include_router(sync_router)


@app.get("/")
async def root():
    return {"status": "ONLINE", "engine": "PostEx Bridge"}
