"""
FastAPI application factory for the exam monitor status API.

Routes:
- /api/snapshot -> current detection snapshot
- /api/alerts   -> recent violation alerts
- /api/status   -> monitor liveness and policy state
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Exam Monitor",
        version="0.1.0",
        description="Person and device monitoring for proctored sessions",
    )

    # CORS for the exam page dev server
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")

    return app
