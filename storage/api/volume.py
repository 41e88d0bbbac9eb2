"""
Volume API

Endpoints:
- POST /create-volume: allocate, format, mount and register a volume
- POST /delete-volume: unmount, unregister and remove a volume
- POST /volume-stats: df-based capacity of one volume
- GET /dev/volumes: capacity of every volume directory
- GET /volumes: registered volume descriptors
"""

import logging
from dataclasses import asdict
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from storage.dependencies import get_volume_manager
from storage.errors import (
    InvalidVolumeRequest,
    StorageError,
    VolumeExistsError,
    VolumeNotFoundError,
)
from storage.services.volume_manager import VolumeManager

logger = logging.getLogger(__name__)

router = APIRouter(tags=["volumes"])


class DockerVolumePayload(BaseModel):
    """Request body in Docker's volume-create shape (capitalised keys)"""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(alias="Name")
    driver: Optional[str] = Field(default=None, alias="Driver")
    driver_opts: Optional[Dict[str, str]] = Field(default=None, alias="DriverOpts")
    labels: Optional[Dict[str, str]] = Field(default=None, alias="Labels")


class VolumeOperationResponse(BaseModel):
    status: str
    name: str


class VolumeStatsResponse(BaseModel):
    name: str
    size: str
    used: str
    available: str
    usage: str
    mount_path: str


class VolumeDescriptorResponse(BaseModel):
    name: str
    image_path: str
    mount_path: str
    size: str
    labels: Dict[str, str]


def _http_error(action: str, exc: StorageError) -> HTTPException:
    if isinstance(exc, InvalidVolumeRequest):
        status_code = 400
    elif isinstance(exc, VolumeExistsError):
        status_code = 409
    elif isinstance(exc, VolumeNotFoundError):
        status_code = 404
    else:
        status_code = 500
    detail = f"Failed to {action}: {exc}"
    logger.error(detail)
    return HTTPException(status_code=status_code, detail=detail)


@router.post("/create-volume", response_model=VolumeOperationResponse)
def create_volume(payload: DockerVolumePayload, mgr: VolumeManager = Depends(get_volume_manager)):
    logger.info(f"Received request to create volume: {payload.name}")
    size = (payload.driver_opts or {}).get("size")
    try:
        descriptor = mgr.create_volume(payload.name, size, payload.labels)
    except StorageError as exc:
        raise _http_error("create volume", exc)

    logger.info(f"Volume {descriptor.name} created successfully!")
    return {"status": "success", "name": descriptor.name}


@router.post("/delete-volume", response_model=VolumeOperationResponse)
def delete_volume(payload: DockerVolumePayload, mgr: VolumeManager = Depends(get_volume_manager)):
    logger.info(f"Received request to delete volume: {payload.name}")
    try:
        mgr.delete_volume(payload.name)
    except StorageError as exc:
        raise _http_error("delete volume", exc)

    logger.info(f"Volume {payload.name} deleted successfully!")
    return {"status": "success", "name": payload.name}


@router.post("/volume-stats", response_model=VolumeStatsResponse)
def get_volume_stats(payload: DockerVolumePayload, mgr: VolumeManager = Depends(get_volume_manager)):
    logger.info(f"Received request for volume stats: {payload.name}")
    try:
        stats = mgr.get_volume_stats(payload.name)
    except StorageError as exc:
        raise _http_error("get volume stats", exc)
    return asdict(stats)


@router.get("/dev/volumes", response_model=List[VolumeStatsResponse])
def get_all_volume_stats(mgr: VolumeManager = Depends(get_volume_manager)):
    logger.info("Received request to get all volumes")
    try:
        volumes = mgr.get_all_volumes()
    except StorageError as exc:
        raise _http_error("get volumes", exc)
    return [asdict(stats) for stats in volumes]


@router.get("/volumes", response_model=List[VolumeDescriptorResponse])
def list_volumes(mgr: VolumeManager = Depends(get_volume_manager)):
    return [asdict(descriptor) for descriptor in mgr.list_descriptors()]
