"""
web/app.py -- FastAPI application entry point for Inkpost.

Run with:      uvicorn asgi:app --reload
               python main.py

Middleware stack (outermost to innermost):
  1. log_requests       -- one access-log line per request
  2. SessionMiddleware  -- signed session cookie <-> request.session

Lifespan is the explicit startup phase: templates are compiled and the
database engine and stores are created before the first request is accepted.
Shutdown disposes the engine.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.sessions import SessionMiddleware

from auth.store import UserStore
from blog.store import PostStore
from core.config import get_settings
from core.db import create_db_engine
from web.routes import router as web_router
from web.views import View, preload_views, render

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("inkpost.web")

_settings = get_settings()


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Startup order matters:
      1. Views first -- a template syntax error aborts startup here.
      2. Engine second -- both stores share it (posts reference users).
      3. Stores last -- each creates its tables if missing.
    """
    logger.info("Inkpost starting up")
    preload_views()
    logger.info("Views compiled (%d)", len(View))
    engine = create_db_engine(_settings.database_url)
    app.state.engine = engine
    app.state.user_store = UserStore(engine)
    app.state.post_store = PostStore(engine)
    logger.info("Stores initialized")

    yield

    engine.dispose()
    logger.info("Inkpost shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Inkpost",
    description="A minimal multi-user markdown blog.",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

# SessionMiddleware signs the cookie with SECRET_KEY (itsdangerous) and only
# exposes its contents as request.session after the signature checks out. A
# tampered or expired cookie yields an empty session, i.e. an anonymous user.
app.add_middleware(
    SessionMiddleware,
    secret_key=_settings.secret_key,
    session_cookie=_settings.session_cookie,
    max_age=_settings.session_max_age,
    same_site="lax",
    https_only=_settings.secure_cookies,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


app.include_router(web_router)


# ---------------------------------------------------------------------------
# Exception handlers
#
# Every error a browser can see is rendered through View.ERROR so the page
# keeps the site layout. Messages are "<code> <reason phrase>" only.
# ---------------------------------------------------------------------------


def _error_page(request: Request, status_code: int) -> HTMLResponse:
    message = f"{status_code} {HTTPStatus(status_code).phrase}"
    return render(request, View.ERROR, {"message": message}, status_code=status_code)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> HTMLResponse:
    """Render 404 (unknown route, unknown post id) and friends.

    A route is a (method, path) pair, so a known path under the wrong method
    is an unknown route too: 405 is answered as 404.
    """
    status_code = 404 if exc.status_code == 405 else exc.status_code
    return _error_page(request, status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> HTMLResponse:
    """Malformed form bodies that FastAPI rejects before a handler runs."""
    logger.info("Request validation failed on %s %s: %s", request.method, request.url.path, exc.errors())
    return _error_page(request, 400)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> HTMLResponse:
    """Catch-all for storage or hashing failures.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_page(request, 500)
