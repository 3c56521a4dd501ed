"""HTTP proxy utilities for the Docker Hub registry and token service.

This module provides pure functions that forward requests through a shared
httpx.AsyncClient. No dependencies on dockerhub_proxy.* modules to maintain
independence and reusability.
"""

from typing import AsyncIterator, Iterable

import httpx
import structlog
from fastapi import Request
from fastapi.responses import Response, StreamingResponse

from .paths import normalize_scope
from .types import RegistryConfig

logger = structlog.stdlib.get_logger(__name__)

# Connection-level headers, never forwarded in either direction
HOP_BY_HOP_HEADERS = frozenset(
    [
        "connection",
        "keep-alive",
        "proxy-connection",
        "te",
        "trailer",
        "transfer-encoding",
        "upgrade",
    ]
)

BODY_METHODS = ("POST", "PUT", "PATCH")


def request_path(request: Request) -> str:
    """Path of the request as the client sent it, still percent-encoded.

    Falls back to the decoded path for servers that do not set ``raw_path``.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        return raw_path.split(b"?", 1)[0].decode("latin-1")
    return request.url.path


async def stream_request_body(request: Request) -> AsyncIterator[bytes]:
    """Stream request body from client in chunks.

    Args:
        request: FastAPI request object

    Yields:
        Chunks of request body data
    """
    async for chunk in request.stream():
        yield chunk


async def stream_response_body(response: httpx.Response) -> AsyncIterator[bytes]:
    """Stream the raw upstream body, closing the upstream response afterwards.

    The response is closed even when the client goes away mid-stream.
    """
    try:
        async for chunk in response.aiter_raw():
            yield chunk
    finally:
        await response.aclose()


def forward_headers(request: Request) -> list[tuple[str, str]]:
    """Headers of the inbound request that go upstream.

    Everything is kept except Host, which the client sets for the target URL,
    and hop-by-hop headers.
    """
    return [
        (name, value)
        for name, value in request.headers.items()
        if name.lower() != "host" and name.lower() not in HOP_BY_HOP_HEADERS
    ]


def drop_client_defaults(
    client: httpx.AsyncClient,
    upstream_request: httpx.Request,
    keep: Iterable[str] = (),
) -> httpx.Request:
    """Remove headers the client added on its own (Accept-Encoding, User-Agent...).

    Headers named in ``keep`` were sent by the caller and stay.
    """
    kept = {name.lower() for name in keep}
    for name in client.headers.keys():
        if name.lower() not in kept and name in upstream_request.headers:
            del upstream_request.headers[name]
    return upstream_request


def passthrough_response(response: httpx.Response) -> StreamingResponse:
    """Hand an upstream response back to the client as-is.

    The response must have been sent with ``stream=True``. Raw body bytes are
    streamed, so a Content-Encoding set by upstream still matches the body.
    """
    streaming_response = StreamingResponse(
        content=stream_response_body(response),
        status_code=response.status_code,
    )
    streaming_response.raw_headers = [
        (name, value)
        for name, value in response.headers.raw
        if name.decode("latin-1").lower() not in HOP_BY_HOP_HEADERS
    ]
    return streaming_response


async def challenge(
    client: httpx.AsyncClient,
    config: RegistryConfig,
    host: str,
) -> Response:
    """Answer the registry API root with a bearer challenge.

    The upstream ``/v2/`` endpoint is queried and its status and body are
    returned, with a single WWW-Authenticate header that sends the client to
    our own token endpoint. All upstream headers are dropped.

    Args:
        client: Shared upstream HTTP client
        config: Registry configuration
        host: Host the client used to reach the proxy (e.g. "hub.example.com")

    Returns:
        Response carrying the challenge

    Raises:
        httpx.HTTPError: If the upstream request fails
    """
    target_url = f"{config.registry_url}/v2/"

    try:
        upstream_response = await client.get(target_url)
    except httpx.HTTPError as e:
        logger.error(
            "Failed to query registry API root",
            error=str(e),
            target_url=target_url,
        )
        raise

    www_authenticate = (
        f'Bearer realm="https://{host}/auth/token",'
        f'service="{config.challenge_service}"'
    )

    logger.info(
        "Issuing registry challenge",
        status_code=upstream_response.status_code,
        realm_host=host,
    )

    return Response(
        content=upstream_response.content,
        status_code=upstream_response.status_code,
        headers={"WWW-Authenticate": www_authenticate},
    )


async def fetch_token(
    client: httpx.AsyncClient,
    config: RegistryConfig,
    scope: str,
) -> StreamingResponse:
    """Request a token from the token service on behalf of the client.

    Only ``service`` and the normalised ``scope`` are sent; any other query
    parameter of the original request is discarded.

    Args:
        client: Shared upstream HTTP client
        config: Registry configuration
        scope: Scope requested by the client (e.g. "repository:alpine:pull")

    Returns:
        The token service response, unmodified

    Raises:
        httpx.HTTPError: If the token request fails
    """
    normalized_scope = normalize_scope(scope, config.default_namespace)

    logger.info(
        "Requesting registry token",
        scope=scope,
        normalized_scope=normalized_scope,
    )

    token_request = client.build_request(
        "GET",
        config.token_url,
        params={"service": config.token_service, "scope": normalized_scope},
    )
    drop_client_defaults(client, token_request)

    try:
        response = await client.send(token_request, stream=True, follow_redirects=True)
    except httpx.HTTPError as e:
        logger.error(
            "Failed to fetch registry token",
            error=str(e),
            token_url=config.token_url,
        )
        raise

    return passthrough_response(response)


async def proxy_request(
    client: httpx.AsyncClient,
    config: RegistryConfig,
    request: Request,
) -> StreamingResponse:
    """Proxy a request to the upstream registry.

    This handles:
    - Method and header forwarding (Host and hop-by-hop headers excluded,
      no client defaults such as Accept-Encoding added)
    - The path as the client sent it, percent-encoding intact
    - Streaming request bodies (for uploads)
    - Manual redirects: a 3xx from upstream goes back to the client, which
      follows it with its own headers (e.g. to blob storage on another host)

    The query string of the original request is not forwarded.

    Args:
        client: Shared upstream HTTP client
        config: Registry configuration
        request: Original FastAPI request from the Docker client

    Returns:
        StreamingResponse with the upstream status, headers and body

    Raises:
        httpx.HTTPError: If the proxied request fails
    """
    target_url = f"{config.registry_url}{request_path(request)}"

    logger.info(
        "Proxying request",
        method=request.method,
        target_url=target_url,
    )

    headers = forward_headers(request)
    upstream_request = client.build_request(
        method=request.method,
        url=target_url,
        headers=headers,
        content=(
            stream_request_body(request) if request.method in BODY_METHODS else None
        ),
    )
    drop_client_defaults(client, upstream_request, keep=[name for name, _ in headers])

    try:
        response = await client.send(
            upstream_request, stream=True, follow_redirects=False
        )
    except httpx.TimeoutException as e:
        logger.error(
            "Timeout while proxying request",
            error=str(e),
            target_url=target_url,
        )
        raise
    except httpx.HTTPError as e:
        logger.error(
            "HTTP error while proxying request",
            error=str(e),
            target_url=target_url,
        )
        raise

    logger.info(
        "Proxy response received",
        status_code=response.status_code,
        target_url=target_url,
        location=response.headers.get("location"),
    )

    return passthrough_response(response)
