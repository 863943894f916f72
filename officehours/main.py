# officehours/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, Response
from fastapi.routing import APIRoute

from .core.config import is_running_tests, settings
from .core.constants import API_DESCRIPTION, API_TITLE, API_VERSION, SERVICE_NAME
from .errors import register_error_handlers
from .monitoring.prometheus_metrics import prometheus_metrics
from .routes.v1 import (
    admin_sync_outbox as admin_sync_outbox_v1,
    availability as availability_v1,
    bookings as bookings_v1,
    health as health_v1,
    match as match_v1,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{SERVICE_NAME} starting up...")
    logger.info(
        f"Environment: {settings.environment} "
        f"(sync_target={settings.sync_target}, mentor_lock={settings.mentor_lock_backend})"
    )
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    yield
    logger.info(f"{SERVICE_NAME} shutting down...")


def _unique_operation_id(route: APIRoute) -> str:
    methods = "_".join(sorted(m.lower() for m in route.methods or []))
    path = route.path_format.replace("/", "_").replace("{", "").replace("}", "").strip("_")
    name = (route.name or "operation").lower().replace(" ", "_")
    return f"{methods}__{path}__{name}".strip("_")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
    generate_unique_id_function=_unique_operation_id,
)

register_error_handlers(app)

api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(bookings_v1.router, prefix="/bookings")
api_v1.include_router(availability_v1.router, prefix="/availability")
api_v1.include_router(match_v1.router, prefix="/match")
api_v1.include_router(admin_sync_outbox_v1.router, prefix="/admin/sync-outbox")
api_v1.include_router(health_v1.router, prefix="/health")

app.include_router(api_v1)


@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    """Prometheus scrape endpoint."""
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
    )


@app.get("/")
def root() -> dict[str, str]:
    return {"service": SERVICE_NAME, "version": API_VERSION, "docs": "/docs"}
