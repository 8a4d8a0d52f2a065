"""
CORS middleware configuration.
The API is read-only, so only GET (plus preflight) is allowed cross-origin.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from services.scout.config import settings


def setup_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-Data-Quality"],
        max_age=600,
    )
