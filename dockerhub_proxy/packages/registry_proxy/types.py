"""Registry proxy types and data structures.

This module contains shared types used across the registry proxy package.
No dependencies on dockerhub_proxy.* modules to maintain independence.
"""

from dataclasses import dataclass
from enum import Enum


@dataclass
class RegistryConfig:
    """Endpoints and literals the proxy works with.

    Attributes:
        registry_url: Base URL of the upstream registry, no trailing slash
                     (e.g. "https://registry-1.docker.io")
        token_url: Token issuing endpoint (e.g. "https://auth.docker.io/token")
        token_service: ``service`` parameter sent to the token endpoint
                      (e.g. "registry.docker.io")
        challenge_service: ``service`` advertised in our WWW-Authenticate
                          challenge (e.g. "docker-proxy-worker")
        landing_url: Where requests for "/" are redirected
        default_namespace: Namespace of official images (e.g. "library")
        redirect_scheme: Scheme used for redirects back to this proxy
    """

    registry_url: str = "https://registry-1.docker.io"
    token_url: str = "https://auth.docker.io/token"
    token_service: str = "registry.docker.io"
    challenge_service: str = "docker-proxy-worker"
    landing_url: str = "https://www.docker.com"
    default_namespace: str = "library"
    redirect_scheme: str = "https"


class RouteKind(str, Enum):
    LANDING = "landing"
    CHALLENGE = "challenge"
    TOKEN = "token"
    NAMESPACE_REDIRECT = "namespace_redirect"
    PROXY = "proxy"
