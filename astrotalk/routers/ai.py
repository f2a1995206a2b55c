"""AI assistant endpoints."""
from fastapi import APIRouter, Depends

from astrotalk.db_instance import require_database
from astrotalk.models import ResourceIndex
from astrotalk.routers import resource_index

router = APIRouter(prefix="/api/ai", tags=["ai"])


@router.get("", response_model=ResourceIndex)
async def ai_index(database=Depends(require_database)):
    """Summary of stored AI conversations."""
    return await resource_index(database, "ai", "ai_conversations")
