"""HTTP API client for interacting with the remote access server."""
import base64
from typing import Any, Dict, List

import requests

from .storage import get_token
from ..shared.utils import split_remote_path


class APIClient:
    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    def _headers(self) -> Dict[str, str]:
        token = get_token()
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _remote(remote_path: str) -> str:
        return "/".join(split_remote_path(remote_path))

    def register(self, login: str, password: str) -> Dict[str, Any]:
        resp = requests.post(
            f"{self.base_url}/auth/register", json={"login": login, "password": password}, timeout=10
        )
        resp.raise_for_status()
        return resp.json()

    def login(self, login: str, password: str) -> Dict[str, Any]:
        resp = requests.post(f"{self.base_url}/auth/login", json={"login": login, "password": password}, timeout=10)
        resp.raise_for_status()
        return resp.json()

    def logout(self) -> Dict[str, Any]:
        resp = requests.post(f"{self.base_url}/auth/logout", headers=self._headers(), timeout=10)
        resp.raise_for_status()
        return resp.json()

    def upload_file(self, remote_path: str, content: bytes) -> Dict[str, Any]:
        resp = requests.put(
            f"{self.base_url}/files/{self._remote(remote_path)}",
            json={"content_b64": base64.b64encode(content).decode()},
            headers=self._headers(),
            timeout=60,
        )
        resp.raise_for_status()
        return resp.json()

    def download_file(self, remote_path: str) -> bytes:
        resp = requests.get(f"{self.base_url}/files/{self._remote(remote_path)}", headers=self._headers(), timeout=60)
        resp.raise_for_status()
        return base64.b64decode(resp.json()["content_b64"])

    def access_log(self, day: str) -> List[Dict[str, Any]]:
        resp = requests.get(f"{self.base_url}/access_log/{day}", headers=self._headers(), timeout=10)
        resp.raise_for_status()
        return resp.json()
