"""
FastAPI dependency providers.

Routers never build services themselves so tests can swap them through
app.dependency_overrides.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from storage import config
from storage.database import get_db
from storage.services.command_runner import CommandRunner
from storage.services.filebrowser_client import FileBrowserClient
from storage.services.volume_manager import VolumeManager


def get_command_runner() -> CommandRunner:
    # 0 disables the per-command timeout
    return CommandRunner(
        use_sudo=config.USE_SUDO,
        timeout_seconds=config.COMMAND_TIMEOUT_SECONDS or None,
    )


def get_volume_manager(
    db: Session = Depends(get_db),
    runner: CommandRunner = Depends(get_command_runner),
) -> VolumeManager:
    return VolumeManager(
        db,
        base_dir=config.VOLUME_BASE_DIR,
        runner=runner,
        default_size=config.DEFAULT_VOLUME_SIZE,
    )


def get_filebrowser_client() -> FileBrowserClient:
    return FileBrowserClient(
        base_url=config.FILEBROWSER_URL,
        admin_user=config.FILEBROWSER_ADMIN_USER,
        admin_password=config.FILEBROWSER_ADMIN_PASS,
        timeout=config.FILEBROWSER_TIMEOUT_SECONDS,
    )
