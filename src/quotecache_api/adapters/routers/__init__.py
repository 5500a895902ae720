"""Routers Package Export (Adapters Layer).

Purpose:
    Provide a stable export for the application router aggregator (`api_router`)
    imported by the FastAPI bootstrap.

Layer:
    adapters/routers
"""

from __future__ import annotations

from .api_router import router as api_router  # noqa: F401
