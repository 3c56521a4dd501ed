from contextlib import asynccontextmanager

import httpx
import structlog
from fastapi import FastAPI, Request, status

from dockerhub_proxy.factories import http_client_factory
from dockerhub_proxy.routes import registry
from dockerhub_proxy.utils.logging import setup_logger
from dockerhub_proxy.utils.response_helpers import docker_error_response
from dockerhub_proxy.utils.sentry import init_sentry

logger = structlog.stdlib.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with http_client_factory() as client:
        app.state.http_client = client
        yield


init_sentry()
# No docs routes, every path belongs to the registry
app = FastAPI(lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
setup_logger(app)


@app.exception_handler(httpx.TimeoutException)
async def upstream_timeout_handler(request: Request, exc: httpx.TimeoutException):
    logger.error("Upstream timed out", path=request.url.path, error=str(exc))
    return docker_error_response(
        status_code=status.HTTP_504_GATEWAY_TIMEOUT,
        error_code="UNAVAILABLE",
        message="upstream timed out",
        detail=str(exc) or None,
    )


@app.exception_handler(httpx.HTTPError)
async def upstream_error_handler(request: Request, exc: httpx.HTTPError):
    logger.error("Upstream request failed", path=request.url.path, error=str(exc))
    return docker_error_response(
        status_code=status.HTTP_502_BAD_GATEWAY,
        error_code="UNAVAILABLE",
        message="upstream unavailable",
        detail=str(exc) or None,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    return docker_error_response(
        status_code=status.HTTP_502_BAD_GATEWAY,
        error_code="UNKNOWN",
        message="proxy error",
        detail=repr(exc),
    )


app.include_router(registry.router)
