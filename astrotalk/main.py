import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from astrotalk import __version__
from astrotalk.config import Settings, settings
from astrotalk.database import Database
from astrotalk.db_instance import db
from astrotalk.models import DatabaseHealth, HealthResponse
from astrotalk.routers import ai, astrologers, auth, bookings, payments

logging.basicConfig(
    level=settings.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

ROUTERS = (auth, astrologers, bookings, payments, ai)


def create_app(app_settings: Optional[Settings] = None, database: Optional[Database] = None) -> FastAPI:
    """Compose the gateway: CORS, uploads, health checks and route modules."""
    app_settings = app_settings or settings
    database = database or db

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Serverless hosts may skip lifespan entirely; require_database
        # connects lazily on the first gated request in that case.
        if app_settings.connect_on_startup:
            database.connect_in_background()
        yield
        await database.disconnect()

    app = FastAPI(
        title="Astrotalk API",
        description="API gateway for astrologer consultations, bookings, payments and AI chat",
        version=__version__,
        lifespan=lifespan
    )
    app.state.settings = app_settings
    app.state.db = database

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ============ Static Files (Uploads) ============

    uploads_dir = os.path.abspath(app_settings.uploads_dir)
    if os.path.isdir(uploads_dir):
        app.mount("/uploads", StaticFiles(directory=uploads_dir), name="uploads")
    else:
        logger.warning(f"Uploads directory {uploads_dir} not found, /uploads is not served")

    # ============ Health Check ============

    @app.get("/", response_model=HealthResponse)
    async def root():
        """Liveness check. Does not depend on the database."""
        return HealthResponse()

    @app.get("/api/health", response_model=DatabaseHealth)
    async def health_check():
        """Report database readiness without starting a connection attempt."""
        snapshot = database.status()
        if database.is_connected:
            return DatabaseHealth(status="healthy", **snapshot)
        body = DatabaseHealth(status="unhealthy", **snapshot)
        return JSONResponse(status_code=503, content=body.model_dump())

    # ============ API Routes ============

    for module in ROUTERS:
        app.include_router(module.router)

    return app


app = create_app()


def run():
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)


if __name__ == "__main__":
    run()
