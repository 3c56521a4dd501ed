import uvicorn

from dockerhub_proxy.settings import settings


def main() -> None:
    uvicorn.run(
        "dockerhub_proxy.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
        proxy_headers=True,
        forwarded_allow_ips="*",
    )


if __name__ == "__main__":
    main()
