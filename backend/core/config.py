import os
from pathlib import Path
from dotenv import load_dotenv

_BACKEND_ROOT = Path(__file__).resolve().parents[1]
_BACKEND_ENV_PATH = _BACKEND_ROOT / ".env"
load_dotenv(dotenv_path=_BACKEND_ENV_PATH, override=False)


def _env_flag(name: str, default: str = "false") -> bool:
    return str(os.getenv(name, default)).strip().lower() in {"1", "true", "yes", "on"}


ENVIRONMENT = str(os.getenv("ENV") or "development").strip().lower()

CAREER_DATA_DIR = Path(str(os.getenv("CAREER_DATA_DIR") or (_BACKEND_ROOT / "data")).strip())

# activity log retrieval window
GRAPH_LOOKBACK_DAYS = max(1, int(os.getenv("GRAPH_LOOKBACK_DAYS", "365")))
ACTIVITY_FETCH_LIMIT = max(1, int(os.getenv("ACTIVITY_FETCH_LIMIT", "365")))
GRAPH_ACTIVITY_SNAPSHOT_LIMIT = max(1, int(os.getenv("GRAPH_ACTIVITY_SNAPSHOT_LIMIT", "100")))

LAYOUT_FRAME_INTERVAL_SEC = max(0.005, float(os.getenv("LAYOUT_FRAME_INTERVAL_SEC", str(1.0 / 30.0))))
LAYOUT_CANVAS_WIDTH = max(200, int(os.getenv("LAYOUT_CANVAS_WIDTH", "800")))
LAYOUT_CANVAS_HEIGHT = max(200, int(os.getenv("LAYOUT_CANVAS_HEIGHT", "500")))

RATE_LIMIT_ENABLED = _env_flag("RATE_LIMIT_ENABLED", "true")
RATE_LIMIT_WINDOW_SEC = max(10, int(os.getenv("RATE_LIMIT_WINDOW_SEC", "60")))
RATE_LIMIT_MAX_REQUESTS = max(20, int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "300")))
