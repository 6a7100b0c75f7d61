"""Equipment availability endpoint."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query

from app.api.deps import CurrentActor, OrderServiceDep
from app.api.errors import to_http_exception
from app.schemas.order import AvailabilityResponse
from app.services.exceptions import NotFoundError, OrderError

router = APIRouter()


@router.get("/{equipment_id}/availability", response_model=AvailabilityResponse)
async def check_availability(
    equipment_id: UUID,
    actor: CurrentActor,
    service: OrderServiceDep,
    start_date: date = Query(...),
    end_date: date = Query(...),
):
    """Check whether the equipment is free for [start_date, end_date).

    Equipment the owner has put in maintenance or taken offline is never available.
    """
    try:
        equipment = await service.catalog.get_equipment(equipment_id)
        if equipment is None:
            raise NotFoundError(f"Equipment {equipment_id} not found")
        result = await service.availability.check_available(
            equipment_id, start_date, end_date, equipment_status=equipment.status
        )
    except OrderError as e:
        raise to_http_exception(e)

    return AvailabilityResponse(
        equipment_id=equipment_id,
        start_date=start_date,
        end_date=end_date,
        available=result.available,
        conflicting_order_id=result.conflicting_order_id,
        equipment_status=result.equipment_status,
    )
