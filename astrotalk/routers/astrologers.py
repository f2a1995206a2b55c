"""Astrologer profile endpoints."""
from fastapi import APIRouter, Depends

from astrotalk.db_instance import require_database
from astrotalk.models import ResourceIndex
from astrotalk.routers import resource_index

router = APIRouter(prefix="/api/astrologers", tags=["astrologers"])


@router.get("", response_model=ResourceIndex)
async def astrologers_index(database=Depends(require_database)):
    """Summary of the astrologer directory."""
    return await resource_index(database, "astrologers", "astrologers")
