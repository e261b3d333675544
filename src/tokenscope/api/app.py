"""FastAPI app factory for the tokenscope NFT API."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError

from tokenscope import __version__
from tokenscope.api.collections import router as collections_router
from tokenscope.api.errors import ApiError, api_error_handler, unhandled_error_handler, validation_error_handler
from tokenscope.api.tokens import router as tokens_router
from tokenscope.settings import Settings, get_settings

ALLOWED_METHODS = "GET,OPTIONS"


def _configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings override; defaults to :func:`get_settings`.

    Returns:
        Configured FastAPI instance.
    """

    resolved = settings or get_settings()
    _configure_logging(resolved)
    allow_origin = resolved.api.cors_allow_origin

    app = FastAPI(title=resolved.api.title, version=__version__)
    app.include_router(collections_router)
    app.include_router(tokens_router)
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.middleware("http")
    async def cors_middleware(request: Request, call_next):
        """Answer preflight requests directly and stamp the CORS origin on everything else."""

        if request.method.upper() == "OPTIONS":
            return Response(
                status_code=204,
                headers={
                    "Access-Control-Allow-Origin": allow_origin,
                    "Access-Control-Allow-Methods": ALLOWED_METHODS,
                },
            )
        try:
            response = await call_next(request)
        except Exception as exc:
            response = await unhandled_error_handler(request, exc)
        response.headers.setdefault("Access-Control-Allow-Origin", allow_origin)
        return response

    @app.get("/healthz", tags=["health"])
    def healthz():
        return {"ok": True, "env": resolved.env}

    return app


# For uvicorn, expose `app` at module level
app = create_app()


def run() -> None:  # pragma: no cover - thin CLI wrapper
    """Serve the API with uvicorn (``tokenscope-api`` console script)."""

    import uvicorn

    uvicorn.run("tokenscope.api.app:app", host="0.0.0.0", port=8000)


__all__ = ["app", "create_app", "run"]
