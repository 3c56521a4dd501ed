from typing import Annotated

import httpx
from fastapi import Depends, Request

from dockerhub_proxy.factories import registry_config_factory
from dockerhub_proxy.packages.registry_proxy import RegistryConfig


def get_upstream_client(request: Request) -> httpx.AsyncClient:
    """The httpx client opened by the app lifespan."""
    return request.app.state.http_client


def get_registry_config() -> RegistryConfig:
    return registry_config_factory()


UpstreamClientDep = Annotated[httpx.AsyncClient, Depends(get_upstream_client)]
RegistryConfigDep = Annotated[RegistryConfig, Depends(get_registry_config)]
