"""
DJI Flight KML - FastAPI Backend

Serves reconstructed flight paths of decoded DJI flight-record captures
found in a data folder. Capture defaults (ground altitude, latitude wrap)
come from the environment and are validated once at startup.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from flightkml.api.captures import router as captures_router, folder_router
from flightkml.api.schemas import ErrorResponse
from flightkml.models.errors import (
    CaptureNotFinalizedError,
    ConfigurationError,
    FlightKmlError,
    InvalidRecordError,
)
from flightkml.models.settings import CaptureSettings
from flightkml.services.repository import init_repository, get_repository


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


DEFAULT_DATA_FOLDER = Path("./data/captures")
DATA_FOLDER_ENV = "FLIGHTKML_DATA_FOLDER"

APP_NAME = "DJI Flight KML"
APP_VERSION = "0.1.0"

ERROR_STATUS = {
    ConfigurationError: 400,
    InvalidRecordError: 422,
    CaptureNotFinalizedError: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate capture defaults and open the data folder."""
    settings = CaptureSettings()
    logger.info(
        f"Starting {APP_NAME} backend (ground altitude {settings.ground_altitude:g} m, "
        f"latitude wrap {'on' if settings.wrap_latitude else 'off'})"
    )

    repo = get_repository()
    if repo.data_folder is None:
        data_folder = Path(os.getenv(DATA_FOLDER_ENV, str(DEFAULT_DATA_FOLDER)))
        if data_folder.is_dir():
            repo = init_repository(data_folder, settings)
            logger.info(f"Indexed {repo.capture_count} captures in {data_folder}")
        else:
            logger.warning(f"Data folder not found: {data_folder}; set one with POST /folder")

    yield

    logger.info(f"Shutting down {APP_NAME} backend")


app = FastAPI(
    title=APP_NAME,
    description="""
    Turns decoded DJI flight records into 3D flight paths.

    Missing position fixes are interpolated, the flight is framed with an
    automatic viewpoint, and each capture can be downloaded as a Google
    Earth KML document with one animated track per aircraft part.

    1. POST /folder with a folder of decoded-record CSV files
    2. GET /captures to list them
    3. POST /captures/{id}/reload to set ground altitude or pin the view
    4. GET /captures/{id}/kml to download the document
    """,
    version=APP_VERSION,
    lifespan=lifespan,
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FlightKmlError)
async def flightkml_error_handler(request: Request, exc: FlightKmlError):
    """Map domain errors that escape a route to a JSON error body."""
    status = next((code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 500)
    if status == 500:
        logger.error(f"Unhandled error on {request.url.path}: {exc}")
    body = ErrorResponse(detail=str(exc), code=type(exc).__name__)
    return JSONResponse(status_code=status, content=body.model_dump())


app.include_router(captures_router)
app.include_router(folder_router)


@app.get("/")
async def root():
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Folder state and the defaults new captures are loaded with."""
    repo = get_repository()
    settings = repo.settings or CaptureSettings()

    return {
        "status": "healthy",
        "data_folder": str(repo.data_folder) if repo.data_folder else None,
        "capture_count": repo.capture_count,
        "ground_altitude": settings.ground_altitude,
        "wrap_latitude": settings.wrap_latitude,
    }
