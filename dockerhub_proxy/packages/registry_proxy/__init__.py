"""Registry proxy package for Docker Hub.

This package provides path/scope normalisation, request classification and
proxy utilities for fronting the Docker Hub registry and token service.
"""

from .paths import (
    DEFAULT_NAMESPACE,
    RepositoryPath,
    normalize_scope,
    parse_repository_path,
    with_default_namespace,
)
from .proxy import (
    challenge,
    fetch_token,
    proxy_request,
    request_path,
    stream_request_body,
)
from .router import classify
from .types import RegistryConfig, RouteKind

__all__ = [
    # Types
    "RegistryConfig",
    "RepositoryPath",
    "RouteKind",
    # Normalisation
    "DEFAULT_NAMESPACE",
    "normalize_scope",
    "parse_repository_path",
    "with_default_namespace",
    # Routing
    "classify",
    # Utilities
    "challenge",
    "fetch_token",
    "proxy_request",
    "request_path",
    "stream_request_body",
]
