"""Application factory and entry point.

Run with:
    uvicorn app:app --reload
"""
from __future__ import annotations

from fastapi import FastAPI

from api import router, set_store
from config import Settings, configure_logging, get_settings
from store import SessionStore


def create_app(
    store: SessionStore | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build and return the FastAPI application.

    Accepts an optional store and settings for testing.
    """
    if settings is None:
        settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)

    if store is None:
        store = SessionStore(
            max_sessions=settings.max_sessions,
            default_backing=settings.default_backing,
            max_result_digits=settings.max_result_digits,
        )

    set_store(store)

    app = FastAPI(
        title=settings.app_name,
        description=(
            "Two-register calculator over arbitrary-precision natural "
            "numbers. Each session holds a top and a bottom register; "
            "every response carries both registers and the flags telling "
            "which guarded operations are currently legal."
        ),
        version="0.1.0",
    )
    app.include_router(router)
    return app


# Default app instance for `uvicorn app:app`
app = create_app()
