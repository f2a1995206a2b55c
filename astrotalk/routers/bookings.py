"""Consultation booking endpoints."""
from fastapi import APIRouter, Depends

from astrotalk.db_instance import require_database
from astrotalk.models import ResourceIndex
from astrotalk.routers import resource_index

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


@router.get("", response_model=ResourceIndex)
async def bookings_index(database=Depends(require_database)):
    return await resource_index(database, "bookings", "bookings")
