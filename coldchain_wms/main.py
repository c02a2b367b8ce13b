"""
Main FastAPI application
"""
import asyncio
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coldchain_wms.config import Settings, get_settings
from coldchain_wms.database import DomainStore
from coldchain_wms.errors import WMSError
from coldchain_wms.services.sensor_simulator import SensorSimulator
from coldchain_wms.utils.logger import get_logger
from coldchain_wms.api import auth, warehouses, locations, products, inventory
from coldchain_wms.api import telemetry, orders, dashboard, energy, devices, site_settings

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    store: DomainStore = app.state.store
    settings: Settings = app.state.settings

    await store.init()
    if settings.SIMULATOR_ENABLED:
        app.state.simulator.start()

    yield

    await store.shutdown()


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(WMSError)
    async def wms_error_handler(request: Request, exc: WMSError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        detail = exc.detail if isinstance(exc.detail, str) else "Unexpected error"
        payload = {"detail": detail, "code": f"http.{exc.status_code}"}
        return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        payload = {
            "detail": "Request validation failed",
            "code": "validation_error",
            "errors": jsonable_encoder(exc.errors()),
        }
        return JSONResponse(status_code=422, content=payload)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    store = DomainStore(settings)
    simulator = SensorSimulator(
        store,
        interval_seconds=settings.SIMULATOR_INTERVAL_SECONDS,
        excursion_probability=settings.SIMULATOR_EXCURSION_PROBABILITY,
        excursion_delta=settings.SIMULATOR_EXCURSION_DELTA,
        jitter=settings.SIMULATOR_JITTER,
    )
    store.simulator = simulator

    app.state.settings = settings
    app.state.store = store
    app.state.simulator = simulator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # REQUEST_TIMEOUT_SECONDS is enforced by get_db on the request's store transaction
    @app.middleware("http")
    async def response_delay(request: Request, call_next):
        if settings.RESPONSE_DELAY_MS:
            await asyncio.sleep(settings.RESPONSE_DELAY_MS / 1000)
        return await call_next(request)

    _register_error_handlers(app)

    # Include routers
    app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
    app.include_router(warehouses.router, prefix="/api/warehouses", tags=["Warehouses"])
    app.include_router(warehouses.zones_router, prefix="/api/zones", tags=["Zones"])
    app.include_router(locations.router, prefix="/api/locations", tags=["Locations"])
    app.include_router(products.router, prefix="/api/products", tags=["Products"])
    app.include_router(products.lots_router, prefix="/api/lots", tags=["Lots"])
    app.include_router(inventory.router, prefix="/api/inventory", tags=["Inventory"])
    app.include_router(telemetry.sensors_router, prefix="/api/sensors", tags=["Sensors"])
    app.include_router(telemetry.alerts_router, prefix="/api/alerts", tags=["Alerts"])
    app.include_router(telemetry.simulator_router, prefix="/api/simulator", tags=["Simulator"])
    app.include_router(orders.inbound_router, prefix="/api/inbound", tags=["Inbound"])
    app.include_router(orders.outbound_router, prefix="/api/outbound", tags=["Outbound"])
    app.include_router(dashboard.router, prefix="/api/kpis", tags=["Dashboard"])
    app.include_router(energy.router, prefix="/api/energy", tags=["Energy"])
    app.include_router(devices.router, prefix="/api/devices", tags=["Devices"])
    app.include_router(site_settings.router, prefix="/api/settings", tags=["Settings"])

    @app.get("/")
    async def root():
        return {
            "app": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "status": "running"
        }

    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "coldchain_wms.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
