from functools import lru_cache

import httpx

from dockerhub_proxy.packages.registry_proxy import RegistryConfig
from dockerhub_proxy.settings import settings


@lru_cache
def registry_config_factory() -> RegistryConfig:
    return RegistryConfig(
        registry_url=settings.REGISTRY_URL,
        token_url=settings.TOKEN_URL,
        token_service=settings.TOKEN_SERVICE,
        challenge_service=settings.CHALLENGE_SERVICE,
        landing_url=settings.LANDING_URL,
        default_namespace=settings.DEFAULT_NAMESPACE,
        redirect_scheme=settings.REDIRECT_SCHEME,
    )


def http_client_factory() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(
            connect=settings.UPSTREAM_CONNECT_TIMEOUT,
            read=settings.UPSTREAM_READ_TIMEOUT,
            write=settings.UPSTREAM_READ_TIMEOUT,
            pool=10.0,
        ),
        follow_redirects=False,
    )
