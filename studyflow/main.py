"""
main.py - FastAPI application entrypoint for the StudyFlow API

Purpose:
- Wires the routers for tasks, routine logs, the dashboard, AI insights,
  auth/profile and settings under /api/v1.
- Configures logging and CORS, and initializes Vertex AI on startup.

Design/behavioral notes:
- Every /api/v1 route requires a Firebase ID token (see auth.get_current_uid).
- Persistence (Firestore) and generation (Vertex AI) are injected into the
  handlers as dependencies; this file only does wiring.
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import CORS_ORIGINS, LOG_LEVEL, PORT, VERTEX_MODEL_NAME
from .gcp_clients import init_vertex
from . import auth
from . import dashboard
from . import insights
from . import routines
from . import settings
from . import tasks

# Configure logging (configurable via LOG_LEVEL env var)
logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
_logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# FastAPI app and routers
app = FastAPI(title="StudyFlow API")
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(auth.router, prefix=f"{API_PREFIX}/auth", tags=["auth"])
app.include_router(dashboard.router, prefix=f"{API_PREFIX}/dashboard", tags=["dashboard"])
app.include_router(tasks.router, prefix=f"{API_PREFIX}/tasks", tags=["tasks"])
app.include_router(routines.router, prefix=f"{API_PREFIX}/routines", tags=["routines"])
app.include_router(insights.router, prefix=f"{API_PREFIX}/insights", tags=["insights"])
app.include_router(settings.router, prefix=f"{API_PREFIX}/settings", tags=["settings"])


@app.on_event("startup")
async def startup_event():
    """Log startup and initialize Vertex AI (best-effort; generation reports 503 if it stays down)."""
    _logger.info("StudyFlow API starting up")
    init_vertex()


@app.get(API_PREFIX)
async def api_root():
    return {"status": "success", "message": "API is running"}


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "vertex_model": VERTEX_MODEL_NAME,
    }


# -------------------------
# Run with Uvicorn when executed directly
# -------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("studyflow.main:app", host="0.0.0.0", port=PORT, reload=True)
