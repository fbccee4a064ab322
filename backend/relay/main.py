"""
FastAPI backend for the chat relay.
POST /chat enriches the user's message with the current time and live search
results, then relays it to the language model.

Run: python -m relay.main   (or: uvicorn relay.main:app --port 5000)
"""
import logging
import sys
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pythonjsonlogger import jsonlogger
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from relay.api import chat
from relay.config import settings
from relay.limits import limiter

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(lineno)s  %(message)s"


def _setup_logging() -> None:
    """Configure root logger: JSON to stderr and to a rotating LOG_FILE, level from LOG_LEVEL."""
    root = logging.getLogger()
    root.setLevel(settings.log_level)
    if root.handlers:
        return
    formatter = jsonlogger.JsonFormatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.log_file:
        handlers.append(RotatingFileHandler(settings.log_file, maxBytes=5_000_000, backupCount=3, encoding="utf-8"))
    for handler in handlers:
        handler.setLevel(settings.log_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)


_setup_logging()


def _log_routes(app: FastAPI) -> None:
    """Log all registered routes at startup."""
    logger.info("Registered routes:")
    for route in app.routes:
        if hasattr(route, "methods") and hasattr(route, "path"):
            for method in sorted(route.methods - {"HEAD", "OPTIONS"}):
                logger.info("  %s %s", method, route.path)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _log_routes(app)
    logger.info("Running on http://localhost:%s", settings.port)
    yield


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    logger.warning("Validation error: %s", errors[0].get("msg") if errors else exc)
    return JSONResponse(status_code=400, content={"reply": "Invalid input."})


# Plain def: SlowAPIMiddleware only calls synchronous handlers
def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded for %s: %s", get_remote_address(request), exc.detail)
    return JSONResponse(status_code=429, content={"reply": "Too many requests, try again later."})


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"reply": "Internal error."})


def create_app() -> FastAPI:
    """
    Build the application. Every route gets the RATE_LIMIT_MAX per RATE_LIMIT_WINDOW
    default limit per client address; POST /chat declares the same limit on its handler.
    """
    app = FastAPI(
        title="Chat Relay API",
        description="Stateless chat relay with time and live-search enrichment",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)

    app.include_router(chat.router, tags=["chat"])

    @app.get("/health")
    async def health():
        """Health check for Docker/orchestration."""
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
