"""Docker Hub registry front.

Every request lands on a single catch-all endpoint which classifies the path
and dispatches it:

- ``/``: redirect to the landing page
- ``/v2/``: bearer challenge pointing at our own ``/auth/token``
- ``/auth/token``: token request forwarded to the token service
- ``/v2/<repo>/<op>/<ref>``: redirect to the same path under the default
  namespace, on the host the client used
- anything else: proxied to the upstream registry

See: https://docs.docker.com/registry/spec/api/
"""

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import RedirectResponse, Response

from dockerhub_proxy.deps.http import RegistryConfigDep, UpstreamClientDep
from dockerhub_proxy.packages.registry_proxy import (
    RouteKind,
    challenge,
    classify,
    fetch_token,
    proxy_request,
    request_path,
    with_default_namespace,
)

logger = structlog.stdlib.get_logger(__name__)

router = APIRouter(tags=["Registry"])

PROXY_METHODS = [
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "OPTIONS",
    "TRACE",
    "CONNECT",
]


@router.api_route(
    "/{full_path:path}", methods=PROXY_METHODS, include_in_schema=False
)
async def registry_entrypoint(
    request: Request,
    client: UpstreamClientDep,
    config: RegistryConfigDep,
) -> Response:
    # Percent-encoding stays, "%2F" is not a segment separator
    path = request_path(request)
    host = request.url.netloc

    route_kind = classify(path)
    structlog.contextvars.bind_contextvars(route=route_kind.value)

    logger.debug("Dispatching registry request", method=request.method, path=path)

    if route_kind == RouteKind.LANDING:
        return RedirectResponse(config.landing_url, status_code=301)

    if route_kind == RouteKind.CHALLENGE:
        return await challenge(client, config, host)

    if route_kind == RouteKind.TOKEN:
        # No fallback for a missing scope, the error boundary answers it
        return await fetch_token(client, config, request.query_params["scope"])

    if route_kind == RouteKind.NAMESPACE_REDIRECT:
        new_path = with_default_namespace(path, config.default_namespace)
        new_url = f"{config.redirect_scheme}://{host}{new_path}"

        logger.info("Redirecting to default namespace", path=path, location=new_url)
        return RedirectResponse(new_url, status_code=301)

    return await proxy_request(client, config, request)
