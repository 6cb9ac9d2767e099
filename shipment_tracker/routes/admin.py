from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from shipment_tracker.config import settings
from shipment_tracker.routes.shipments import get_shipment_service
from shipment_tracker.service import ShipmentService

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post("/reset")
async def reset_shipments(service: ShipmentService = Depends(get_shipment_service)) -> JSONResponse:
    """
    Remove every shipment from the store. For test isolation and local runs only;
    refused unless ADMIN_RESET_ENABLED is set.
    """
    if not settings.admin_reset_enabled:
        return JSONResponse(
            status_code=403,
            content={"status_code": 403, "error": "forbidden", "message": "Store reset is disabled"},
        )
    removed = len(service.list_all())
    service.reset()
    return JSONResponse(
        status_code=200,
        content={"status": "ok", "removed": removed},
    )
