"""
Pytest configuration and fixtures for the storage service tests.

Commands never reach the host: FakeRunner records every argv and emulates
the parts of docker and df the volume manager relies on.
"""

import os
import sys
from pathlib import Path
from typing import Callable, List, Tuple

import pytest

# Keep the developer's .env and on-disk registry out of the tests
os.environ["HUBFLY_STORAGE_DOTENV_PATH"] = str(Path(__file__).parent / "no-such.env")
os.environ["HUBFLY_STORAGE_DATABASE_URL"] = "sqlite://"

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from storage.errors import CommandError
from storage.models import Base
from storage.services.command_runner import CommandRunner
from storage.services.volume_manager import VolumeManager


DF_TEMPLATE = (
    "Filesystem      Size  Used Avail Use% Mounted on\n"
    "/dev/loop7       93M   24K   86M   1% {path}\n"
)


class FakeRunner(CommandRunner):
    """CommandRunner double with an in-memory docker volume table."""

    def __init__(self, use_sudo: bool = True):
        super().__init__(use_sudo=use_sudo)
        self.calls: List[List[str]] = []
        self.docker_volumes = set()
        self.failures: List[Tuple[Callable[[List[str]], bool], int, str]] = []

    def fail_when(self, predicate: Callable[[List[str]], bool], returncode: int = 1, output: str = "boom") -> None:
        self.failures.append((predicate, returncode, output))

    def fail_command(self, command: str, returncode: int = 1, output: str = "boom") -> None:
        self.fail_when(lambda argv: strip_sudo(argv)[0] == command, returncode, output)

    def commands(self) -> List[str]:
        """First word of every call, sudo stripped."""
        return [strip_sudo(argv)[0] for argv in self.calls]

    def find(self, command: str) -> List[str]:
        for argv in self.calls:
            if strip_sudo(argv)[0] == command:
                return argv
        raise AssertionError(f"{command} was never run; calls: {self.calls}")

    def run(self, *argv: str) -> str:
        argv_list = list(argv)
        self.calls.append(argv_list)
        for predicate, returncode, output in self.failures:
            if predicate(argv_list):
                raise CommandError(argv_list, returncode, output)

        cmd = strip_sudo(argv_list)
        if cmd[:3] == ["docker", "volume", "ls"]:
            needle = cmd[-1].split("=", 1)[1]
            return "".join(f"{name}\n" for name in sorted(self.docker_volumes) if needle in name)
        if cmd[:3] == ["docker", "volume", "create"]:
            name = cmd[cmd.index("--name") + 1]
            self.docker_volumes.add(name)
            return f"{name}\n"
        if cmd[:3] == ["docker", "volume", "rm"]:
            name = cmd[3]
            if name not in self.docker_volumes:
                raise CommandError(argv_list, 1, f"Error response from daemon: get {name}: no such volume")
            self.docker_volumes.remove(name)
            return f"{name}\n"
        if cmd[0] == "df":
            return DF_TEMPLATE.format(path=cmd[-1])
        return ""


def strip_sudo(argv: List[str]) -> List[str]:
    return argv[1:] if argv and argv[0] == "sudo" else argv


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def db_session(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'registry.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def base_dir(tmp_path):
    path = tmp_path / "volumes"
    path.mkdir()
    return path


@pytest.fixture
def manager(db_session, base_dir, runner, monkeypatch):
    monkeypatch.delenv("SUDO_USER", raising=False)
    return VolumeManager(db_session, str(base_dir), runner=runner)


@pytest.fixture
def app():
    from storage.service import app as service_app

    yield service_app
    service_app.dependency_overrides.clear()


@pytest.fixture
def client(app, manager):
    from storage.dependencies import get_volume_manager

    app.dependency_overrides[get_volume_manager] = lambda: manager
    # startup events are not run: no real base dir or registry is touched
    return TestClient(app)
