"""
Postboard API

Single-page blog: a listing of posts and a multipart submission form.
"""

import logging
import time
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from postboard import __version__
from postboard.config import get_settings
from postboard.middleware import RequestIDMiddleware, SecurityHeadersMiddleware
from postboard.routers import home
from postboard.services.form_parser import MalformedFormError
from postboard.services.http_client import close_shared_client
from postboard.services.page_renderer import PageRenderer, load_page_shell
from postboard.services.post_store import PostStore, StoreError, create_engine

logger = logging.getLogger(__name__)

# Health check cache: (result_dict, timestamp)
_health_cache: tuple[dict[str, Any], float] | None = None
_HEALTH_CACHE_TTL = 30  # seconds


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Build the store and page renderer; refuse to start without a schema."""
    settings = get_settings()
    store = PostStore(create_engine(settings.database_url))
    try:
        if settings.create_schema_on_startup:
            await store.create_schema()
        await store.verify_schema()
        renderer = PageRenderer(load_page_shell(settings.page_shell_path or None))
    except Exception:
        await store.dispose()
        raise

    app.state.post_store = store
    app.state.page_renderer = renderer
    logger.info("Postboard %s started (%s)", __version__, settings.environment)
    try:
        yield
    finally:
        await close_shared_client()
        await store.dispose()


app = FastAPI(
    title="Postboard",
    description="A single-page blog with remote avatars",
    version=__version__,
    lifespan=lifespan,
)

# Added last so the request ID wraps every other middleware
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)

app.include_router(home.router)


@app.exception_handler(MalformedFormError)
async def malformed_form_handler(request: Request, exc: MalformedFormError) -> PlainTextResponse:
    logger.warning("Rejected malformed form: %s", exc)
    return PlainTextResponse(f"Malformed form data: {exc}", status_code=400)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> PlainTextResponse:
    return PlainTextResponse("Storage error, please try again later.", status_code=500)


async def _run_health_checks(store: PostStore) -> dict[str, Any]:
    """Run all health checks, returning the full response body."""
    global _health_cache
    now = time.time()
    if _health_cache is not None:
        cached_result, cached_at = _health_cache
        if now - cached_at < _HEALTH_CACHE_TTL:
            return cached_result

    checks = {"store": "ok" if await store.ping() else "fail"}
    failed = [k for k, v in checks.items() if v != "ok"]

    if failed:
        overall = "degraded"
        logger.warning("Health check degraded — failed: %s", ", ".join(failed))
    else:
        overall = "ok"

    result: dict[str, Any] = {
        "status": overall,
        "service": "postboard",
        "version": __version__,
        "checks": checks,
    }
    _health_cache = (result, now)
    return result


@app.get("/health")
async def health_check(request: Request) -> JSONResponse:
    """Health check verifying the store is reachable."""
    result = await _run_health_checks(request.app.state.post_store)
    status_code = 200 if result["status"] == "ok" else 503
    return JSONResponse(content=result, status_code=status_code)
