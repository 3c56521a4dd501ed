import httpx
import pytest
from httpx import AsyncClient

from dockerhub_proxy.main import app
from dockerhub_proxy.packages.registry_proxy import RegistryConfig


@pytest.mark.parametrize("method", ["GET", "HEAD", "POST", "DELETE", "TRACE"])
async def test_root_redirects_to_landing_page(client: AsyncClient, upstream, method):
    response = await client.request(method, "/?foo=bar")

    assert response.status_code == 301
    assert response.headers["location"] == "https://www.docker.com"
    assert upstream.requests == []


async def test_registry_root_returns_challenge(client: AsyncClient, upstream):
    upstream.handler = lambda request: httpx.Response(
        401,
        json={"errors": [{"code": "UNAUTHORIZED"}]},
        headers={"Docker-Distribution-API-Version": "registry/2.0"},
    )

    response = await client.get("/v2/")

    assert str(upstream.last_request.url) == "https://registry-1.docker.io/v2/"
    assert response.status_code == 401
    assert response.json() == {"errors": [{"code": "UNAUTHORIZED"}]}
    assert response.headers["www-authenticate"] == (
        'Bearer realm="https://hub.example.com/auth/token",'
        'service="docker-proxy-worker"'
    )
    assert "docker-distribution-api-version" not in response.headers


async def test_registry_root_challenge_keeps_port(dependency_overrides, upstream):
    async with AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://hub.example.com:5000",
    ) as ac:
        response = await ac.get("/v2/")

    assert response.headers["www-authenticate"].startswith(
        'Bearer realm="https://hub.example.com:5000/auth/token"'
    )


async def test_token_request_is_forwarded(client: AsyncClient, upstream):
    upstream.handler = lambda request: httpx.Response(
        200,
        json={"token": "abc", "expires_in": 300},
        headers={"X-Upstream": "auth"},
    )

    response = await client.get(
        "/auth/token",
        params={
            "scope": "repository:alpine:pull",
            "service": "docker-proxy-worker",
            "account": "someone",
        },
        headers={"Authorization": "Basic Zm9vOmJhcg=="},
    )

    sent = upstream.last_request
    assert (sent.url.scheme, sent.url.host, sent.url.path) == (
        "https",
        "auth.docker.io",
        "/token",
    )
    assert list(sent.url.params.multi_items()) == [
        ("service", "registry.docker.io"),
        ("scope", "repository:library/alpine:pull"),
    ]
    assert "authorization" not in sent.headers
    assert "accept-encoding" not in sent.headers
    assert "user-agent" not in sent.headers

    assert response.status_code == 200
    assert response.json() == {"token": "abc", "expires_in": 300}
    assert response.headers["x-upstream"] == "auth"


async def test_token_request_passes_errors_through(client: AsyncClient, upstream):
    upstream.handler = lambda request: httpx.Response(
        401, json={"details": "incorrect username or password"}
    )

    response = await client.get(
        "/auth/token", params={"scope": "repository:someuser/repo:push"}
    )

    assert upstream.last_request.url.params["scope"] == "repository:someuser/repo:push"
    assert response.status_code == 401
    assert response.json() == {"details": "incorrect username or password"}


async def test_token_request_without_scope(lenient_client: AsyncClient, upstream):
    response = await lenient_client.get("/auth/token")

    assert response.status_code == 502
    assert response.json()["errors"][0]["code"] == "UNKNOWN"
    assert upstream.requests == []


@pytest.mark.parametrize(
    "path, location",
    [
        (
            "/v2/alpine/manifests/latest",
            "https://hub.example.com/v2/library/alpine/manifests/latest",
        ),
        (
            "/v2/busybox/blobs/sha256:abc",
            "https://hub.example.com/v2/library/busybox/blobs/sha256:abc",
        ),
        (
            "/v2/alpine/tags/list",
            "https://hub.example.com/v2/library/alpine/tags/list",
        ),
    ],
)
async def test_missing_namespace_redirects(
    client: AsyncClient, upstream, path, location
):
    response = await client.get(path)

    assert response.status_code == 301
    assert response.headers["location"] == location
    assert upstream.requests == []


async def test_namespace_redirect_uses_configured_namespace(
    client: AsyncClient, registry_config: RegistryConfig
):
    registry_config.default_namespace = "mirror"

    response = await client.head("/v2/nginx/manifests/1.27")

    assert response.status_code == 301
    assert response.headers["location"] == (
        "https://hub.example.com/v2/mirror/nginx/manifests/1.27"
    )


async def test_proxy_forwards_method_and_headers(client: AsyncClient, upstream):
    upstream.handler = lambda request: httpx.Response(
        200,
        content=b'{"schemaVersion":2}',
        headers={
            "Content-Type": "application/vnd.docker.distribution.manifest.v2+json",
            "Docker-Content-Digest": "sha256:abc",
        },
    )

    response = await client.get(
        "/v2/library/alpine/manifests/latest?n=10",
        headers={
            "Authorization": "Bearer xyz",
            "Accept": "application/vnd.docker.distribution.manifest.v2+json",
        },
    )

    sent = upstream.last_request
    assert sent.method == "GET"
    assert str(sent.url) == (
        "https://registry-1.docker.io/v2/library/alpine/manifests/latest"
    )
    assert sent.headers["authorization"] == "Bearer xyz"
    assert sent.headers["accept"] == (
        "application/vnd.docker.distribution.manifest.v2+json"
    )
    assert sent.headers["host"] == "registry-1.docker.io"

    assert response.status_code == 200
    assert response.content == b'{"schemaVersion":2}'
    assert response.headers["docker-content-digest"] == "sha256:abc"
    assert response.headers["content-type"] == (
        "application/vnd.docker.distribution.manifest.v2+json"
    )


async def test_proxy_returns_redirects_unfollowed(client: AsyncClient, upstream):
    blob_url = "https://production.cloudflare.docker.com/registry-v2/blobs/abc"
    upstream.handler = lambda request: httpx.Response(
        307, headers={"Location": blob_url}
    )

    response = await client.get(
        "/v2/library/alpine/blobs/sha256:abc",
        headers={"Authorization": "Bearer xyz"},
    )

    assert len(upstream.requests) == 1
    assert response.status_code == 307
    assert response.headers["location"] == blob_url


async def test_proxy_streams_upload_body(client: AsyncClient, upstream):
    upstream.handler = lambda request: httpx.Response(
        202, headers={"Location": "/v2/someuser/repo/blobs/uploads/uuid"}
    )

    response = await client.patch(
        "/v2/someuser/repo/blobs/uploads/uuid",
        content=b"layer-bytes",
        headers={"Content-Type": "application/octet-stream"},
    )

    sent = upstream.last_request
    assert sent.method == "PATCH"
    assert sent.content == b"layer-bytes"
    assert sent.headers["content-type"] == "application/octet-stream"
    assert response.status_code == 202
    assert response.headers["location"] == "/v2/someuser/repo/blobs/uploads/uuid"


async def test_proxy_passes_upstream_errors_through(client: AsyncClient, upstream):
    upstream.handler = lambda request: httpx.Response(
        404, json={"errors": [{"code": "MANIFEST_UNKNOWN"}]}
    )

    response = await client.get("/v2/library/nope/manifests/latest")

    assert response.status_code == 404
    assert response.json() == {"errors": [{"code": "MANIFEST_UNKNOWN"}]}


async def test_upstream_timeout_returns_504(client: AsyncClient, upstream):
    def slow(request):
        raise httpx.ReadTimeout("timed out", request=request)

    upstream.handler = slow

    response = await client.get("/v2/library/alpine/manifests/latest")

    assert response.status_code == 504
    assert response.headers["docker-distribution-api-version"] == "registry/2.0"
    assert response.json()["errors"][0]["code"] == "UNAVAILABLE"


async def test_upstream_unreachable_returns_502(client: AsyncClient, upstream):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    upstream.handler = refuse

    response = await client.get("/v2/")

    assert response.status_code == 502
    assert response.json()["errors"][0]["code"] == "UNAVAILABLE"


async def test_proxy_adds_no_headers_of_its_own(dependency_overrides, upstream):
    async with AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://hub.example.com"
    ) as ac:
        del ac.headers["accept-encoding"]
        del ac.headers["user-agent"]
        await ac.get(
            "/v2/library/alpine/manifests/latest",
            headers={"Authorization": "Bearer xyz"},
        )

    sent = upstream.last_request
    assert "accept-encoding" not in sent.headers
    assert "user-agent" not in sent.headers
    assert sent.headers["authorization"] == "Bearer xyz"


async def test_proxy_keeps_inbound_accept_encoding(client: AsyncClient, upstream):
    await client.get(
        "/v2/library/alpine/blobs/sha256:abc",
        headers={"Accept-Encoding": "identity"},
    )

    assert upstream.last_request.headers["accept-encoding"] == "identity"


async def test_encoded_slash_is_not_a_segment(client: AsyncClient, upstream):
    response = await client.get("/v2/foo%2Fbar/manifests/latest")

    assert response.status_code == 301
    assert response.headers["location"] == (
        "https://hub.example.com/v2/library/foo%2Fbar/manifests/latest"
    )
    assert upstream.requests == []


async def test_proxy_keeps_path_encoding(client: AsyncClient, upstream):
    response = await client.get("/v2/someuser/a%2Fb/manifests/latest")

    assert response.status_code == 200
    assert upstream.last_request.url.raw_path == (
        b"/v2/someuser/a%2Fb/manifests/latest"
    )
