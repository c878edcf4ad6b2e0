"""
RMM Service Entrypoint

FastAPI application for the RMM control plane.
Includes all API routers under /api, error mapping, demo seeding and the
execution runner lifecycle.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from rmm.api import commands, computers, dashboard, deps, groups, licenses, monitors, procedures, settings
from rmm.config import LOG_LEVEL, SEED_DEMO_DATA
from rmm.database import SessionLocal, init_db
from rmm.exceptions import AiProviderError, AiUnavailableError, NotFoundError, RMMError
from rmm.services.execution_runner import SimulatedExecutionRunner
from rmm.services.seed import seed_demo_data
from shared.logging_config import setup_logging

logger = logging.getLogger(__name__)

API_PREFIX = "/api"

app = FastAPI(title="RMM Control Plane")

# Include all API routers
app.include_router(computers.router, prefix=API_PREFIX)
app.include_router(groups.router, prefix=API_PREFIX)
app.include_router(procedures.router, prefix=API_PREFIX)
app.include_router(procedures.executions_router, prefix=API_PREFIX)
app.include_router(monitors.router, prefix=API_PREFIX)
app.include_router(commands.router, prefix=API_PREFIX)
app.include_router(licenses.router, prefix=API_PREFIX)
app.include_router(licenses.system_router, prefix=API_PREFIX)
app.include_router(settings.router, prefix=API_PREFIX)
app.include_router(settings.ai_router, prefix=API_PREFIX)
app.include_router(dashboard.router, prefix=API_PREFIX)

# Global execution runner instance
execution_runner = None


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(AiUnavailableError)
async def ai_unavailable_handler(request: Request, exc: AiUnavailableError):
    return JSONResponse(status_code=503, content={"detail": str(exc)})


@app.exception_handler(AiProviderError)
async def ai_provider_handler(request: Request, exc: AiProviderError):
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(RMMError)
async def rmm_error_handler(request: Request, exc: RMMError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
    return JSONResponse(status_code=409, content={"detail": "Conflicting or duplicate data"})


@app.on_event("startup")
def startup_init():
    """Initialize store, load demo data and start the execution runner"""
    global execution_runner

    setup_logging("rmm", level=LOG_LEVEL)

    init_db()
    if SEED_DEMO_DATA:
        db = SessionLocal()
        try:
            seed_demo_data(db)
        finally:
            db.close()

    logger.info("Starting execution runner...")
    execution_runner = SimulatedExecutionRunner(session_factory=SessionLocal)
    execution_runner.start()

    # Inject runner into the routers
    deps.set_execution_runner(execution_runner)

    logger.info("RMM service startup complete")


@app.on_event("shutdown")
def shutdown_cleanup():
    """Stop execution runner on shutdown"""
    global execution_runner

    if execution_runner:
        logger.info("Stopping execution runner...")
        execution_runner.stop()

    logger.info("RMM service shutdown complete")


@app.get("/")
def root():
    return {
        "service": "rmm",
        "message": "RMM control-plane API running",
    }
