from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass
class StartupProfile:
    host: str
    port: int
    base_dir: str


def validate_service_profile(profile: StartupProfile, filebrowser_url: str = "") -> None:
    """Fail fast on settings that would only break once the first request arrives."""
    if not str(profile.host or "").strip():
        raise ValueError("bind host must not be empty")
    if not 0 < int(profile.port) < 65536:
        raise ValueError(f"port {profile.port} is outside 1..65535")
    if not str(profile.base_dir or "").strip():
        raise ValueError("base_dir must not be empty")

    # the file browser is optional; when configured it must be a usable URL
    if str(filebrowser_url or "").strip():
        parsed = urlparse(filebrowser_url.strip())
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("FILEBROWSER_URL must be a valid http(s) URL")
