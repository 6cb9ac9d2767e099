import logging
import sys

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from shipment_tracker.config import settings
from shipment_tracker.metrics import get_metrics_bytes, get_metrics_content_type
from shipment_tracker.routes import admin, shipments
from shipment_tracker.service import ShipmentService
from shipment_tracker.store import ShipmentStore
from shipment_tracker.tracking_codes import TrackingCodeGenerator

logger = logging.getLogger(__name__)


def create_app(service: ShipmentService | None = None) -> FastAPI:
    """Build the app with its own store, so each app (and each test) starts empty."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stdout,
    )
    if service is None:
        generator = TrackingCodeGenerator(max_attempts=settings.tracking_code_max_attempts)
        service = ShipmentService(ShipmentStore(), generator)

    app = FastAPI(title="Shipment Tracker")
    app.state.shipment_service = service
    app.include_router(shipments.router)
    app.include_router(admin.router)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"status_code": 500, "error": "internal_error", "message": "An unexpected error occurred"},
        )

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.get("/metrics")
    async def metrics() -> Response:
        """Prometheus scrape endpoint."""
        return Response(
            content=get_metrics_bytes(),
            media_type=get_metrics_content_type(),
        )

    return app


app = create_app()
