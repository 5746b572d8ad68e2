# vitb_energy/main.py

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from vitb_energy.core.config import settings
from vitb_energy.core.database import db, connect_to_mongo, close_mongo_connection
from vitb_energy.api.energy_data import router as energy_data_router
from vitb_energy.api.storage import router as storage_router
from vitb_energy.services.baseline import refresh_baseline
from vitb_energy.services.energy_poller import start_energy_scheduler
from vitb_energy.services.session import PollerSession

logger = logging.getLogger(__name__)

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="VITB Energy Logger",
    version="1.0.0",
    description="Polls the VITB sensor API and stores per-meter energy consumption",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

app.state.session = PollerSession()


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled exception on {request.method} {request.url}")
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "path": str(request.url.path),
            "method": request.method,
            "error": str(exc) if settings.DEBUG else None,
        },
    )


# ---------------------------------------------------------------------------
# CORS
# ---------------------------------------------------------------------------
cors_origins = settings.get_cors_origins() or ["*"]
logger.info(f"CORS origins configured: {cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
app.include_router(energy_data_router, prefix="/api", tags=["energy-data"])
app.include_router(storage_router, prefix="/api1", tags=["storage"])

# ---------------------------------------------------------------------------
# Startup / Shutdown
# ---------------------------------------------------------------------------
scheduler = None


@app.on_event("startup")
async def on_startup():
    global scheduler
    logger.info("Starting VITB Energy Logger...")

    try:
        await connect_to_mongo()
    except Exception as e:
        logger.exception(f"Error connecting to MongoDB: {e}")

    if settings.SCHEDULER_ENABLED:
        session = app.state.session
        await refresh_baseline(session)
        scheduler = start_energy_scheduler(session)
    else:
        logger.info("Scheduler disabled (SCHEDULER_ENABLED=false)")

    logger.info(f"Startup complete. ENV={settings.ENVIRONMENT}")


@app.on_event("shutdown")
async def on_shutdown():
    global scheduler

    try:
        if scheduler:
            scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
    except Exception as e:
        logger.warning(f"Error stopping scheduler: {e}")

    await close_mongo_connection()
    logger.info("Shutdown complete")


# ---------------------------------------------------------------------------
# Root / Health
# ---------------------------------------------------------------------------
@app.get("/")
async def root():
    return {
        "message": "VITB Energy Logger is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT,
        "endpoints": {
            "energy_data": "/api/energydata",
            "storage": "/api1/files",
            "health": "/health",
        },
    }


@app.get("/health")
async def health_check():
    db_status = "unknown"
    try:
        await db.command("ping")
        db_status = "healthy"
    except Exception as e:
        db_status = f"error: {str(e)}"
        logger.error(f"DB health check failed: {e}")

    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": settings.ENVIRONMENT,
        "services": {
            "database": db_status,
            "scheduler": "running" if scheduler else "stopped",
            "poller": app.state.session.status.get("health", "unknown"),
        },
    }


def run() -> None:
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)


if __name__ == "__main__":
    run()
