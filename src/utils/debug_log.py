"""
Debug Log Utility

Configures the standard logging used across the display-state modules and
provides an optional, safe JSON-lines trace for synchronization debugging.
The trace is written only when enabled via environment variable; failures are
swallowed so the application never crashes due to logging.

Inputs:
    - debug_log(location, message, data) calls from stage/binder code
    - Environment: DISPLAY_STATE_DEBUG_LOG (set to 1, true, or yes to enable)
    - Environment: DISPLAY_STATE_LOG_LEVEL (e.g. DEBUG, INFO; default WARNING)

Outputs:
    - When enabled: appends JSON lines to <project_root>/.debug/display_state.log
    - When disabled or on error: no side effects

Requirements:
    - Standard library only: logging, pathlib, os, json, time
"""

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Optional

# Project root: this file is src/utils/debug_log.py -> parent=utils, parent.parent=src, parent.parent.parent=project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

LOG_DIR = _PROJECT_ROOT / ".debug"
LOG_FILENAME = "display_state.log"

# Enable only when env is set to 1, true, or yes (case-insensitive). Default off.
_DEBUG_ENV = os.getenv("DISPLAY_STATE_DEBUG_LOG", "0").strip().lower()
DEBUG_LOG_ENABLED = _DEBUG_ENV in ("1", "true", "yes")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """
    Attach a console handler to the root logger.

    Args:
        level: Level name; defaults to DISPLAY_STATE_LOG_LEVEL or WARNING
    """
    if level is None:
        level = os.getenv("DISPLAY_STATE_LOG_LEVEL", "WARNING")
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def debug_log(location: str, message: str, data: Dict[str, Any]) -> None:
    """
    Append one JSON log line to the trace file when debug logging is enabled.

    Failures (missing dir, permission, disk full, etc.) are caught and ignored
    so the application remains stable.

    Args:
        location: Call site identifier (e.g. "stage.py:bind_layer_groups").
        message: Short description of the event.
        data: Arbitrary dict of context (must be JSON-serializable).
    """
    if not DEBUG_LOG_ENABLED:
        return
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        payload = {
            "location": location,
            "message": message,
            "data": data,
            "timestamp": int(time.time() * 1000),
        }
        with open(LOG_DIR / LOG_FILENAME, "a", encoding="utf-8") as f:
            f.write(json.dumps(payload) + "\n")
    except Exception:
        pass
