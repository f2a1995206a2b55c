from pydantic import BaseModel
from typing import Optional


# ============ Health Models ============

class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "Astrotalk API"


class DatabaseHealth(BaseModel):
    status: str
    database: str
    attempts: int = 0
    last_error: Optional[str] = None


# ============ Route Module Models ============

class ResourceIndex(BaseModel):
    resource: str
    collection: str
    documents: int
