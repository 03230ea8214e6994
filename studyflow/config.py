"""
config.py - Environment configuration for the StudyFlow API

All settings are read once on import from the process environment, after
loading a `.env` file if one can be found. Nothing here talks to the network.
"""

import os
import logging

from dotenv import load_dotenv, find_dotenv
import pytz

_logger = logging.getLogger(__name__)
_logger.addHandler(logging.NullHandler())

# --- Load environment variables on import ---
try:
    _env_path = find_dotenv(usecwd=True)
    if _env_path:
        load_dotenv(_env_path, override=False)
        _logger.debug("Loaded .env from %s", _env_path)
    else:
        load_dotenv(override=False)
except Exception as e:
    _logger.warning("Error loading .env: %s", e)

# --- Google Cloud ---
GCP_PROJECT: str = os.environ.get("GCP_PROJECT", "studyflow-dev")
GCP_LOCATION: str = os.environ.get("GCP_LOCATION", "us-central1")
FIREBASE_PROJECT_ID: str = os.environ.get("FIREBASE_PROJECT_ID", GCP_PROJECT)

# --- Vertex AI generation ---
VERTEX_MODEL_NAME: str = os.environ.get("VERTEX_MODEL_NAME", "gemini-2.5-flash")
VERTEX_TIMEOUT_SECONDS: float = float(os.environ.get("VERTEX_TIMEOUT_SECONDS", "30"))

# --- App ---
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()
PORT: int = int(os.environ.get("PORT", "8000"))
CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if origin.strip()
]

# Timezone used to decide which calendar day a routine log belongs to
LOCAL_TIMEZONE = pytz.timezone(os.environ.get("LOCAL_TIMEZONE", "UTC"))

# Domain limits
INSIGHT_HISTORY_LIMIT = 10
DASHBOARD_WINDOW_DAYS = 7
LATEST_LOGS_LIMIT = 10
