import os
from typing import Any, Dict

# --- Config ---
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "4000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")
QUEUE_SIZE = int(os.getenv("QUEUE_SIZE", "5"))
MIN_CADENCE_MS = float(os.getenv("MIN_CADENCE_MS", "1"))
SLOW_MIN_MS = int(os.getenv("SLOW_MIN_MS", "400"))
SLOW_MAX_MS = int(os.getenv("SLOW_MAX_MS", "500"))
TIMEOUT_MS = int(os.getenv("TIMEOUT_MS", "10000"))


def get_env_vars() -> Dict[str, Any]:
    return {
        "HOST": HOST,
        "PORT": PORT,
        "LOG_LEVEL": LOG_LEVEL,
        "QUEUE_SIZE": QUEUE_SIZE,
        "MIN_CADENCE_MS": MIN_CADENCE_MS,
        "SLOW_MIN_MS": SLOW_MIN_MS,
        "SLOW_MAX_MS": SLOW_MAX_MS,
        "TIMEOUT_MS": TIMEOUT_MS,
    }
