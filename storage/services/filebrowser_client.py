"""
File Browser Client

Mints a one-time login URL for a file-browser instance, scoped to a single
volume's data directory.

Flow:
1. Log in as admin (POST /api/login, token is the raw response body)
2. Create a throwaway user scoped to /volumes/<name>/_data (POST /api/users)
3. Log in as that user
4. Exchange the user session for a login-token URL (POST /api/login/token)
"""

import logging
import secrets
from typing import Any, Dict, Optional

import requests

from storage.errors import FileBrowserError, FileBrowserNotConfigured

logger = logging.getLogger(__name__)

TEMP_USER_PREFIX = "tempuser_"


def random_hex(n_bytes: int) -> str:
    return secrets.token_hex(n_bytes)


def volume_scope(volume_name: str) -> str:
    return f"/volumes/{volume_name}/_data"


def build_temp_user_request(volume_name: str, username: str, password: str) -> Dict[str, Any]:
    """Body for POST /api/users: read/write inside the volume, nothing else."""
    return {
        "what": "user",
        "which": [],
        "data": {
            "scope": volume_scope(volume_name),
            "locale": "en",
            "viewMode": "mosaic",
            "singleClick": False,
            "sorting": {"by": "", "asc": False},
            "perm": {
                "admin": False,
                "execute": False,
                "create": True,
                "rename": True,
                "modify": True,
                "delete": True,
                "share": False,
                "download": True,
            },
            "commands": [],
            "hideDotfiles": False,
            "dateFormat": False,
            "aceEditorTheme": "",
            "username": username,
            "password": password,
            "rules": [],
            "lockPassword": True,
            "id": 0,
        },
    }


class FileBrowserClient:
    """
    Client for the file-browser REST API.

    Usage:
        client = FileBrowserClient(
            base_url="http://127.0.0.1:8080",
            admin_user="admin",
            admin_password="secret",
        )
        url = client.create_scoped_login_url("my-volume")
    """

    def __init__(
        self,
        base_url: str,
        admin_user: str,
        admin_password: str,
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or "").rstrip("/")
        self.admin_user = admin_user
        self.admin_password = admin_password
        self.timeout = timeout
        self.session = session or requests.Session()

    def _post(self, path: str, step: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            return self.session.post(url, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as e:
            raise FileBrowserError(f"{step} request timed out: {url}") from e
        except requests.exceptions.RequestException as e:
            raise FileBrowserError(f"{step} request failed: {e}") from e

    def login(self, username: str, password: str) -> str:
        """Log in and return the session token (the raw response body)."""
        response = self._post(
            "/api/login",
            "login",
            json={"username": username, "password": password},
        )
        if response.status_code != 200:
            raise FileBrowserError(
                f"login failed with status {response.status_code}: {response.text}"
            )
        return response.text.strip()

    def create_temp_user(self, admin_token: str, volume_name: str, username: str, password: str) -> None:
        response = self._post(
            "/api/users",
            "create user",
            json=build_temp_user_request(volume_name, username, password),
            headers={"X-Auth": admin_token},
        )
        if response.status_code not in (200, 201):
            raise FileBrowserError(
                f"create user failed with status {response.status_code}: {response.text}"
            )

    def get_login_token_url(self, user_token: str) -> str:
        response = self._post(
            "/api/login/token",
            "get login token",
            headers={"X-Auth": user_token},
        )
        if response.status_code != 200:
            raise FileBrowserError(
                f"get login token failed with status {response.status_code}: {response.text}"
            )
        try:
            payload = response.json()
        except ValueError as e:
            raise FileBrowserError(f"failed to decode get token response: {e}") from e
        url = payload.get("url") if isinstance(payload, dict) else None
        if not url:
            raise FileBrowserError("get token response did not contain a url")
        return str(url)

    def create_scoped_login_url(self, volume_name: str) -> str:
        """Run the full admin -> temp user -> login token flow for one volume."""
        if not self.base_url:
            raise FileBrowserNotConfigured("file browser is not configured (FILEBROWSER_URL is empty)")

        try:
            admin_token = self.login(self.admin_user, self.admin_password)
        except FileBrowserError as e:
            raise FileBrowserError(f"Failed to login as admin: {e}") from e

        username = TEMP_USER_PREFIX + random_hex(8)
        password = random_hex(16)
        try:
            self.create_temp_user(admin_token, volume_name, username, password)
        except FileBrowserError as e:
            raise FileBrowserError(f"Failed to create temp user: {e}") from e
        logger.info(f"Created file browser user {username} scoped to {volume_scope(volume_name)}")

        try:
            user_token = self.login(username, password)
        except FileBrowserError as e:
            raise FileBrowserError(f"Failed to login as temp user: {e}") from e

        try:
            token_url = self.get_login_token_url(user_token)
        except FileBrowserError as e:
            raise FileBrowserError(f"Failed to get login token URL: {e}") from e

        return self.base_url + token_url
