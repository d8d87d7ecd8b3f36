import os
from dotenv import load_dotenv

# ---------------- ENV ----------------
load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# ---------- PocketBase ----------
BASE_URL = os.getenv("PB_BASE_URL", "http://127.0.0.1:8090")
IDENTITY = os.getenv("PB_IDENTITY", "")
PASSWORD = os.getenv("PB_PASSWORD", "")
ADMIN_EMAIL = os.getenv("PB_ADMIN_EMAIL", "")
ADMIN_PASSWORD = os.getenv("PB_ADMIN_PASSWORD", "")
REQUEST_TIMEOUT = float(os.getenv("PB_TIMEOUT", "10"))

# ---------- UI ----------
SYNC_INTERVAL_MS = int(os.getenv("SYNC_INTERVAL_MS", "60000"))
TOPMOST = _flag("TOPMOST")
WINDOW_GEOMETRY = os.getenv("WINDOW_GEOMETRY", "1280x720")
DEFAULT_PROJECT_ID = os.getenv("DEFAULT_PROJECT_ID", "")

# ---------- board ----------
# "live": every hover over a new target commits a move
# "drop": commit once when the drag ends
DRAG_COMMIT_MODE = os.getenv("DRAG_COMMIT_MODE", "live").strip().lower()
REORDER_WITHIN_COLUMN = _flag("REORDER_WITHIN_COLUMN")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
