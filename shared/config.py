# shared/config.py
import os
from typing import Optional
from dotenv import load_dotenv
load_dotenv(".venv/.env")

def require_env(var_name: str, default: Optional[str] = None) -> str:
    val = os.getenv(var_name)
    if not val:
        if default is None:
            raise ValueError(f"Missing required environment variable: {var_name}")
        val = default
    return val

def env_int(var_name: str, default: int) -> int:
    raw = require_env(var_name, str(default))
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {var_name} must be an integer, got {raw!r}")

# --- Storage ---
SECRETS_DIR = require_env("SECRETS_DIR", ".secrets")
STORE_BACKEND = require_env("STORE_BACKEND", "firestore")   # firestore | memory
TASKS_COLLECTION = require_env("TASKS_COLLECTION", "tasks")
GOALS_COLLECTION = require_env("GOALS_COLLECTION", "goals")

# --- Time ---
DEFAULT_TZ_NAME = require_env("DEFAULT_TZ", "UTC")
DEFAULT_TASK_DUE_DAYS = env_int("DEFAULT_TASK_DUE_DAYS", 2)

# --- Google Calendar ---
CALENDAR_ID = require_env("CALENDAR_ID", "primary")
CALENDAR_EVENT_MINUTES = env_int("CALENDAR_EVENT_MINUTES", 30)

# --- Pending actions (chat confirmation) ---
PENDING_ACTIONS_TTL_SECONDS = env_int("PENDING_ACTIONS_TTL_SECONDS", 5 * 60)
