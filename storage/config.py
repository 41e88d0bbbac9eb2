import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# .env values never override variables already set in the environment
DOTENV_LOADED = load_dotenv(os.getenv("HUBFLY_STORAGE_DOTENV_PATH", ".env"))


def _int_env(name: str, default: int) -> int:
    raw = str(os.getenv(name, str(default))).strip()
    try:
        return int(raw)
    except Exception:
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = str(os.getenv(name, "")).strip().lower()
    if not raw:
        return default
    return raw in {"1", "true", "yes", "on"}


def _str_env(name: str, default: str = "") -> str:
    return str(os.getenv(name, default)).strip()


BIND_HOST = _str_env("HUBFLY_STORAGE_BIND_HOST", "0.0.0.0")
API_PORT = _int_env("HUBFLY_STORAGE_PORT", 8203)
VOLUME_BASE_DIR = _str_env("HUBFLY_STORAGE_BASE_DIR", "./docker/volumes")
DEFAULT_VOLUME_SIZE = _str_env("HUBFLY_STORAGE_DEFAULT_SIZE", "1G")
USE_SUDO = _bool_env("HUBFLY_STORAGE_USE_SUDO", True)
COMMAND_TIMEOUT_SECONDS = _int_env("HUBFLY_STORAGE_COMMAND_TIMEOUT_SECONDS", 300)
DATABASE_URL = _str_env("HUBFLY_STORAGE_DATABASE_URL", "sqlite:///./data/hubfly_storage.db")
LOG_LEVEL = _str_env("HUBFLY_STORAGE_LOG_LEVEL", "INFO").upper()
LOG_FILE = _str_env("HUBFLY_STORAGE_LOG_FILE") or None

FILEBROWSER_URL = _str_env("FILEBROWSER_URL").rstrip("/")
FILEBROWSER_ADMIN_USER = _str_env("FILEBROWSER_ADMIN_USER")
FILEBROWSER_ADMIN_PASS = str(os.getenv("FILEBROWSER_ADMIN_PASS", ""))
FILEBROWSER_TIMEOUT_SECONDS = _int_env("FILEBROWSER_TIMEOUT_SECONDS", 10)
