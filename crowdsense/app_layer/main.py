"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from crowdsense.app_layer.routers import saved, simulation
from crowdsense.logging_setup import setup_logging
from crowdsense.simulation_layer.errors import (
    ComputationError,
    GenerationError,
    InvalidParametersError,
    PersistenceError,
    SimulationBusyError,
    SimulationNotFoundError,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    yield


app = FastAPI(
    title="CrowdSense: Crowd-sensing Simulation API",
    description="Synthetic mobility, sensing tasks and candidate matching",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(
    simulation.router, prefix="/api/v1/simulation", tags=["simulation"]
)
app.include_router(
    saved.router, prefix="/api/v1/saved", tags=["saved"]
)


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": message, **extra})


@app.exception_handler(InvalidParametersError)
async def invalid_parameters_handler(request: Request, exc: InvalidParametersError):
    return _error(422, str(exc))


@app.exception_handler(SimulationBusyError)
async def busy_handler(request: Request, exc: SimulationBusyError):
    return _error(409, str(exc))


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError):
    return _error(500, str(exc), phase=exc.phase)


@app.exception_handler(ComputationError)
async def computation_error_handler(request: Request, exc: ComputationError):
    return _error(500, str(exc), phase="candidates")


@app.exception_handler(SimulationNotFoundError)
async def not_found_handler(request: Request, exc: SimulationNotFoundError):
    return _error(404, str(exc))


@app.exception_handler(PersistenceError)
async def persistence_error_handler(request: Request, exc: PersistenceError):
    logger.error("Persistence failure on %s: %s", request.url.path, exc)
    return _error(500, str(exc))


@app.get("/health")
async def health_check():
    return {"status": "ok"}
