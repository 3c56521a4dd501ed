"""Request classification for the Docker Hub proxy.

Paths are compared verbatim and case sensitively, in a fixed priority order.
"""

from .paths import parse_repository_path
from .types import RouteKind

LANDING_PATH = "/"
CHALLENGE_PATH = "/v2/"
TOKEN_PATH = "/auth/token"


def classify(path: str) -> RouteKind:
    """Pick the handling mode for a request path.

    Args:
        path: Request path without query string (e.g. "/v2/alpine/tags/list")

    Returns:
        The RouteKind the request must be dispatched to
    """
    if path == LANDING_PATH:
        return RouteKind.LANDING
    if path == CHALLENGE_PATH:
        return RouteKind.CHALLENGE
    if path == TOKEN_PATH:
        return RouteKind.TOKEN

    parsed = parse_repository_path(path)
    if parsed is not None and parsed.namespace is None:
        return RouteKind.NAMESPACE_REDIRECT

    return RouteKind.PROXY
