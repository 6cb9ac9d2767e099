from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from shipment_tracker.errors import Failure, FailureKind, Result
from shipment_tracker.schemas import CreateShipmentBody, ShipmentOut, UpdateStatusBody
from shipment_tracker.service import ShipmentService
from shipment_tracker.shipment_state import VALID_TRANSITIONS

router = APIRouter(prefix="/api/shipment", tags=["shipments"])

STATUS_CODE_BY_KIND: dict[FailureKind, int] = {
    FailureKind.NOT_FOUND: 404,
    FailureKind.TERMINAL_STATE: 400,
    FailureKind.NO_OP_TRANSITION: 400,
    FailureKind.DISALLOWED_TRANSITION: 400,
    FailureKind.UNRECOGNIZED_STATE: 400,
    FailureKind.DUPLICATE_KEY: 500,
    FailureKind.EXHAUSTED_ATTEMPTS: 500,
}


def get_shipment_service(request: Request) -> ShipmentService:
    return request.app.state.shipment_service


def failure_response(failure: Failure) -> JSONResponse:
    status_code = STATUS_CODE_BY_KIND.get(failure.kind, 500)
    return JSONResponse(
        status_code=status_code,
        content={"status_code": status_code, "error": failure.kind.value, "message": failure.message},
    )


def _shipment_response(result: Result, status_code: int = 200, headers: dict | None = None) -> JSONResponse:
    if not result.ok:
        return failure_response(result.failure)
    return JSONResponse(
        status_code=status_code,
        content=ShipmentOut.from_shipment(result.value).model_dump(mode="json"),
        headers=headers,
    )


@router.get("/view")
async def list_shipments(service: ShipmentService = Depends(get_shipment_service)) -> list[ShipmentOut]:
    return [ShipmentOut.from_shipment(s) for s in service.list_all()]


@router.get("/lifecycle")
async def lifecycle() -> dict[str, list[str]]:
    """Allowed next statuses for every status."""
    return {
        current.value: sorted(s.value for s in allowed)
        for current, allowed in VALID_TRANSITIONS.items()
    }


@router.get("/{tracking_id}")
async def get_shipment(tracking_id: str, service: ShipmentService = Depends(get_shipment_service)) -> JSONResponse:
    return _shipment_response(service.get_by_tracking_id(tracking_id))


@router.post("/create")
async def create_shipment(
    body: CreateShipmentBody,
    request: Request,
    service: ShipmentService = Depends(get_shipment_service),
) -> JSONResponse:
    result = service.create(body.origin, body.destination, body.estimated_delivery_date)
    headers = None
    if result.ok:
        headers = {"Location": str(request.url_for("get_shipment", tracking_id=result.value.tracking_id))}
    return _shipment_response(result, status_code=201, headers=headers)


@router.put("/{tracking_id}/status")
async def update_status(
    tracking_id: str,
    body: UpdateStatusBody,
    service: ShipmentService = Depends(get_shipment_service),
) -> JSONResponse:
    return _shipment_response(service.update_status(tracking_id, body.status, body.location))
