"""
File Browser API

POST /url-volume/create: one-time login URL for a file-browser user whose
scope is limited to the volume's data directory.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from storage.dependencies import get_filebrowser_client
from storage.errors import FileBrowserError, InvalidVolumeRequest
from storage.services.filebrowser_client import FileBrowserClient
from storage.services.volume_manager import validate_volume_name

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/url-volume", tags=["filebrowser"])


class URLVolumeCreateRequest(BaseModel):
    name: str


class URLVolumeCreateResponse(BaseModel):
    url: str


@router.post("/create", response_model=URLVolumeCreateResponse)
def create_volume_url(request: URLVolumeCreateRequest, client: FileBrowserClient = Depends(get_filebrowser_client)):
    logger.info(f"Received request for file browser URL: {request.name}")
    try:
        validate_volume_name(request.name)
    except InvalidVolumeRequest as exc:
        logger.error(str(exc))
        raise HTTPException(status_code=400, detail=str(exc))

    try:
        url = client.create_scoped_login_url(request.name)
    except FileBrowserError as exc:
        logger.error(str(exc))
        raise HTTPException(status_code=500, detail=str(exc))

    return {"url": url}
