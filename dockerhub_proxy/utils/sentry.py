import sentry_sdk

from dockerhub_proxy.settings import settings


def init_sentry() -> bool:
    """Start error reporting when a DSN is configured."""
    if not settings.SENTRY_DSN:
        return False

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=0.01,
        send_default_pii=False,
        environment=settings.SENTRY_ENVIRONMENT or None,
    )
    return True
