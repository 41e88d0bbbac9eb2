"""
Loopback volume lifecycle: creation, deletion and capacity stats.

A volume lives under <base_dir>/<name>/:
    volume.img   fixed-size ext4 image (fallocate + mkfs.ext4)
    _data/       loop mount point, bound into Docker as a named volume

Creation and deletion are fixed command sequences. A failing step aborts the
operation and surfaces the command output; nothing is rolled back.
"""

import logging
import os
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from storage.errors import (
    CommandError,
    InvalidVolumeRequest,
    StorageError,
    VolumeExistsError,
    VolumeNotFoundError,
)
from storage.models import VolumeRecord
from storage.services.command_runner import CommandRunner

logger = logging.getLogger(__name__)

DATA_DIR_NAME = "_data"
IMAGE_FILE_NAME = "volume.img"

# Docker's own rule for named volumes
VOLUME_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]+$")
# fallocate -l: number with optional K/M/G/T/P/E suffix (KiB, MB, ...)
VOLUME_SIZE_PATTERN = re.compile(r"^[0-9]+(?:\.[0-9]+)?(?:[KMGTPE](?:i?B)?)?$", re.IGNORECASE)


@dataclass
class VolumeDescriptor:
    name: str
    image_path: str
    mount_path: str
    size: str
    labels: Dict[str, str] = field(default_factory=dict)


@dataclass
class VolumeStats:
    name: str
    size: str
    used: str
    available: str
    usage: str
    mount_path: str


def format_size(size: str) -> str:
    """Rewrite a df -h unit suffix as bytes: '976M' -> '976 MB'. Plain numbers pass through."""
    if not size:
        return size
    last = size[-1]
    if last.isascii() and last.isalpha():
        return f"{size[:-1]} {last}B"
    return size


def parse_df_output(name: str, output: str) -> VolumeStats:
    """
    Build VolumeStats from `df -h <path>` output.

    The first line is the header. A long device name may push the numbers onto
    a continuation line, so every line after the header is joined.
    """
    lines = [line for line in output.splitlines() if line.strip()]
    if len(lines) < 2:
        raise StorageError("invalid df output")

    fields = " ".join(lines[1:]).split()
    if len(fields) < 6:
        raise StorageError("invalid df output fields")

    return VolumeStats(
        name=name,
        size=format_size(fields[1]),
        used=format_size(fields[2]),
        available=format_size(fields[3]),
        usage=fields[4],
        mount_path=" ".join(fields[5:]),
    )


def validate_volume_name(name: str) -> None:
    if not name or not VOLUME_NAME_PATTERN.fullmatch(name):
        raise InvalidVolumeRequest(
            f"invalid volume name '{name}': must match {VOLUME_NAME_PATTERN.pattern}"
        )


def validate_volume_size(size: str) -> None:
    if not VOLUME_SIZE_PATTERN.fullmatch(size):
        raise InvalidVolumeRequest(f"invalid volume size '{size}' (expected e.g. 100M, 1G)")


class VolumeManager:
    """
    Manages loopback volume lifecycle: creation, deletion and stats.
    """

    def __init__(
        self,
        db: Session,
        base_dir: str,
        runner: Optional[CommandRunner] = None,
        default_size: str = "1G",
    ):
        """
        Initialize volume manager.

        Args:
            db: SQLAlchemy session for the volume registry
            base_dir: Directory holding one sub-directory per volume
            runner: Command runner (sudo enabled by default)
            default_size: Size used when a request does not declare one
        """
        self.db = db
        self.base_dir = Path(base_dir).resolve()
        self.runner = runner or CommandRunner()
        self.default_size = default_size

    def volume_path(self, name: str) -> Path:
        return self.base_dir / name

    def data_path(self, name: str) -> Path:
        return self.volume_path(name) / DATA_DIR_NAME

    def image_path(self, name: str) -> Path:
        return self.volume_path(name) / IMAGE_FILE_NAME

    # ========================================================================
    # EXISTENCE
    # ========================================================================

    def volume_exists(self, name: str) -> bool:
        """Check whether Docker already knows a volume with exactly this name."""
        try:
            output = self.runner.run("docker", "volume", "ls", "-q", "-f", f"name={name}")
        except CommandError as e:
            raise StorageError(f"failed to check if volume exists: {e}") from e
        # the name filter matches substrings, so compare whole lines
        return name in {line.strip() for line in output.splitlines()}

    # ========================================================================
    # VOLUME CREATION
    # ========================================================================

    def create_volume(
        self,
        name: str,
        size: Optional[str] = None,
        labels: Optional[Dict[str, str]] = None,
    ) -> VolumeDescriptor:
        """
        Provision a loopback volume and register it with Docker.

        Steps:
        1. Validate name and size, reject existing Docker volumes
        2. Create <base>/<name>/_data
        3. Allocate and format the ext4 image, loop-mount it on _data
        4. Open up _data (drop lost+found, chmod, chown to SUDO_USER)
        5. docker volume create bound to _data
        6. Record the descriptor in the registry

        Raises:
            InvalidVolumeRequest, VolumeExistsError, CommandError, StorageError
        """
        validate_volume_name(name)
        if not (size or "").strip():
            size = self.default_size
        validate_volume_size(size)
        labels = dict(labels or {})

        if self.volume_exists(name):
            raise VolumeExistsError(name)

        data_path = self.data_path(name)
        image_path = self.image_path(name)

        try:
            data_path.mkdir(mode=0o755, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"failed to create directory: {e}") from e

        logger.info(f"Allocating {size} image file at {image_path}")
        self._step("fallocate", self.runner.privileged, "fallocate", "-l", size, str(image_path))

        logger.info(f"Formatting {image_path} as ext4")
        self._step("mkfs.ext4", self.runner.privileged, "mkfs.ext4", str(image_path))

        logger.info(f"Mounting volume image at {data_path}")
        self._step("mount", self.runner.privileged, "mount", "-o", "loop", str(image_path), str(data_path))

        lost_and_found = data_path / "lost+found"
        logger.info(f"Removing lost+found directory: {lost_and_found}")
        try:
            self.runner.privileged("rm", "-rf", str(lost_and_found))
        except CommandError as e:
            logger.warning(f"failed to remove lost+found: {e}")

        logger.info(f"Setting permissions for data directory: {data_path} to 777")
        self._step("chmod", self.runner.privileged, "chmod", "-R", "777", str(data_path))

        sudo_user = os.getenv("SUDO_USER", "").strip()
        if sudo_user:
            logger.info(f"Setting ownership for data directory: {data_path} to {sudo_user}")
            self._step(
                "chown", self.runner.privileged,
                "chown", "-R", f"{sudo_user}:{sudo_user}", str(data_path),
            )

        logger.info(f"Registering docker volume: {name}")
        docker_args = [
            "docker", "volume", "create",
            "--name", name,
            "--opt", f"device={data_path}",
            "--opt", "type=none",
            "--opt", "o=bind",
        ]
        for key, value in sorted(labels.items()):
            docker_args.extend(["--label", f"{key}={value}"])
        self._step("docker volume create", self.runner.run, *docker_args)

        descriptor = VolumeDescriptor(
            name=name,
            image_path=str(image_path),
            mount_path=str(data_path),
            size=size,
            labels=labels,
        )
        self._record(descriptor)
        logger.info(f"Volume {name} created ({size})")
        return descriptor

    # ========================================================================
    # VOLUME DELETION
    # ========================================================================

    def delete_volume(self, name: str) -> None:
        """
        Tear down a volume in reverse creation order.

        An unmount failure is logged and cleanup continues, the image may
        simply not be mounted any more.
        """
        validate_volume_name(name)
        volume_path = self.volume_path(name)
        data_path = self.data_path(name)

        logger.info(f"Unmounting volume at {data_path}")
        try:
            self.runner.privileged("umount", str(data_path))
        except CommandError as e:
            logger.warning(f"unmount failed (might be acceptable if not mounted): {e}")

        logger.info(f"Removing docker volume: {name}")
        self._step("docker volume rm", self.runner.run, "docker", "volume", "rm", name)

        logger.info(f"Removing volume directory: {volume_path}")
        try:
            shutil.rmtree(volume_path)
        except FileNotFoundError:
            logger.info(f"Volume directory {volume_path} already absent")
        except OSError as e:
            raise StorageError(f"failed to remove volume directory: {e}") from e

        record = self._get_record(name)
        if record is not None:
            self.db.delete(record)
            self.db.commit()
        logger.info(f"Volume {name} deleted")

    # ========================================================================
    # STATS
    # ========================================================================

    def get_volume_stats(self, name: str) -> VolumeStats:
        validate_volume_name(name)
        data_path = self.data_path(name)
        if not data_path.is_dir():
            raise VolumeNotFoundError(name)

        try:
            output = self.runner.run("df", "-h", str(data_path))
        except CommandError as e:
            raise CommandError(e.argv, e.returncode, e.output, step="df command") from e
        return parse_df_output(name, output)

    def get_all_volumes(self) -> List[VolumeStats]:
        """Stats for every volume directory; directories that fail are skipped."""
        if not self.base_dir.is_dir():
            raise StorageError(f"failed to read base directory: {self.base_dir} does not exist")

        volumes: List[VolumeStats] = []
        for entry in sorted(self.base_dir.iterdir(), key=lambda p: p.name):
            if not entry.is_dir():
                continue
            try:
                volumes.append(self.get_volume_stats(entry.name))
            except StorageError as e:
                logger.warning(f"failed to get stats for {entry.name}: {e}")
        return volumes

    # ========================================================================
    # REGISTRY
    # ========================================================================

    def list_descriptors(self) -> List[VolumeDescriptor]:
        records = self.db.scalars(select(VolumeRecord).order_by(VolumeRecord.name)).all()
        return [self._to_descriptor(record) for record in records]

    def _get_record(self, name: str) -> Optional[VolumeRecord]:
        return self.db.scalars(select(VolumeRecord).where(VolumeRecord.name == name)).first()

    def _record(self, descriptor: VolumeDescriptor) -> None:
        # a stale row can survive a manual `docker volume rm`
        record = self._get_record(descriptor.name) or VolumeRecord(name=descriptor.name)
        record.image_path = descriptor.image_path
        record.mount_path = descriptor.mount_path
        record.size = descriptor.size
        record.labels = descriptor.labels
        try:
            self.db.add(record)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def _to_descriptor(record: VolumeRecord) -> VolumeDescriptor:
        return VolumeDescriptor(
            name=record.name,
            image_path=record.image_path,
            mount_path=record.mount_path,
            size=record.size,
            labels=record.labels,
        )

    @staticmethod
    def _step(label: str, run, *argv: str) -> str:
        try:
            return run(*argv)
        except CommandError as e:
            logger.error(f"{label} failed: {e}")
            raise CommandError(e.argv, e.returncode, e.output, step=label) from e
