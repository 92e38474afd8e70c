"""Server configuration values."""
import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent
DATABASE_URL = f"sqlite:///{BASE_DIR / 'remote_access.db'}"
TOKEN_EXPIRY_MINUTES = 60 * 24
SERVER_LOG_FILE = BASE_DIR / "server.log"

APP_NAME = "RemoteDesk"
# Platform local application-data directory; falls back to the working directory.
ACCESS_LOG_ROOT = Path(os.environ.get("LOCALAPPDATA") or os.getcwd())
FILES_DIR = ACCESS_LOG_ROOT / APP_NAME / "files"
