from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GeneralConfig(BaseSettings):
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = ""


class UpstreamConfig(BaseSettings):
    REGISTRY_URL: str = "https://registry-1.docker.io"
    TOKEN_URL: str = "https://auth.docker.io/token"
    TOKEN_SERVICE: str = "registry.docker.io"

    UPSTREAM_CONNECT_TIMEOUT: float = 30.0
    UPSTREAM_READ_TIMEOUT: float = 1800.0  # 30 minutes for large layer downloads

    @field_validator("REGISTRY_URL")
    @classmethod
    def strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class ProxyConfig(BaseSettings):
    CHALLENGE_SERVICE: str = "docker-proxy-worker"
    """Service name advertised in the WWW-Authenticate challenge"""

    LANDING_URL: str = "https://www.docker.com"
    DEFAULT_NAMESPACE: str = "library"
    REDIRECT_SCHEME: str = "https"


class Settings(
    GeneralConfig,
    UpstreamConfig,
    ProxyConfig,
    BaseSettings,
):
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.prod", ".env.test"),
        extra="allow",
    )


settings = Settings()
