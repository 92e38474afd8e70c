"""Persisted client session: bearer token, logged-in user and last server URL.

The state lives in a small JSON document, ``~/.remote_access_client.json``
unless ``REMOTE_ACCESS_CLIENT_STATE`` points elsewhere.
"""
import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

STORAGE_FILE = Path(os.environ.get("REMOTE_ACCESS_CLIENT_STATE") or Path.home() / ".remote_access_client.json")
SESSION_KEYS = ("token", "user")


def load_state() -> Dict[str, Any]:
    try:
        return json.loads(STORAGE_FILE.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}


def _update(**changes: Any) -> Dict[str, Any]:
    """Apply ``changes`` to the stored state; a ``None`` value removes the key."""
    state = load_state()
    for key, value in changes.items():
        if value is None:
            state.pop(key, None)
        else:
            state[key] = value
    STORAGE_FILE.parent.mkdir(parents=True, exist_ok=True)
    STORAGE_FILE.write_text(json.dumps(state, indent=2), encoding="utf-8")
    return state


def store_auth(token: str, user: Dict[str, Any]) -> None:
    _update(token=token, user=user)


def clear_auth() -> None:
    _update(**{key: None for key in SESSION_KEYS})


def store_server_url(url: str) -> None:
    _update(server_url=url.rstrip("/"))


def get_server_url() -> Optional[str]:
    return load_state().get("server_url")


def get_token() -> Optional[str]:
    return load_state().get("token")


def get_user() -> Optional[Dict[str, Any]]:
    return load_state().get("user")
