"""
Storage Service Entrypoint

FastAPI application for the Hubfly storage service.
Includes the volume, file-browser and health routers and startup initialization.
"""
from fastapi import FastAPI
from pathlib import Path
import logging

from storage import config
from storage.api import filebrowser, health, volume
from storage.database import init_db
from storage.startup_profile import StartupProfile, validate_service_profile

logger = logging.getLogger(__name__)

app = FastAPI(title="Hubfly Storage Service")

app.include_router(volume.router)
app.include_router(filebrowser.router)
app.include_router(health.router)


@app.on_event("startup")
def startup_init():
    """Validate configuration, create the volume base directory and the registry"""
    validate_service_profile(
        StartupProfile(host=config.BIND_HOST, port=config.API_PORT, base_dir=config.VOLUME_BASE_DIR),
        filebrowser_url=config.FILEBROWSER_URL,
    )

    if not config.DOTENV_LOADED:
        logger.info("No .env file found")

    base_dir = Path(config.VOLUME_BASE_DIR)
    base_dir.mkdir(mode=0o755, parents=True, exist_ok=True)
    logger.info(f"Volume base directory: {base_dir.resolve()}")

    init_db()

    if not config.FILEBROWSER_URL:
        logger.warning("FILEBROWSER_URL not set, /url-volume/create will fail")

    logger.info("Storage service startup complete")


@app.get("/")
def root():
    return {
        "service": "hubfly-storage",
        "message": "Hubfly storage service running",
    }
