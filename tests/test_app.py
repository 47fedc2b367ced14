import httpx
import pytest
from fastapi.testclient import TestClient

from app import create_app


@pytest.fixture
def client(config, logger, transport):
    app = create_app(config, logger, transport=transport)
    with TestClient(app) as test_client:
        yield test_client


def test_forwards_request_and_relays_response(client, origin, logger):
    response = client.get("/", params={"key": "testing", "url": "https://example.com/foo"})

    assert response.status_code == 200
    assert response.content == b"hello"
    assert response.headers["x-origin"] == "yes"

    sent = origin.requests[0]
    assert sent.url.host == "example.com"
    assert sent.url.port in (None, 443)
    assert sent.url.raw_path == b"/foo"
    assert sent.headers["host"] == "example.com"
    assert [f[2] for f in logger.forwards] == ["dyn_example_com_443"]


def test_query_string_is_forwarded(client, origin):
    client.get("/", params={"key": "testing", "url": "https://example.com/foo?a=b"})
    assert origin.requests[0].url.raw_path == b"/foo?a=b"


def test_inbound_path_is_ignored(client, origin):
    client.get("/some/where", params={"key": "testing", "url": "https://example.com/bar"})
    assert origin.requests[0].url.raw_path == b"/bar"


def test_origin_status_passes_through(client, origin):
    origin.status = 404
    origin.content = b"nope"
    response = client.get("/", params={"key": "testing", "url": "https://example.com/missing"})
    assert response.status_code == 404
    assert response.content == b"nope"


def test_header_hygiene(client, origin):
    client.get(
        "/",
        params={"key": "testing", "url": "https://example.com/"},
        headers={
            "X-Forwarded-For": "10.0.0.1",
            "X-Forwarded-Host": "evil",
            "X-Forwarded-Proto": "http",
            "X-Custom": "kept",
        },
    )
    sent = origin.requests[0]
    assert "x-forwarded-for" not in sent.headers
    assert "x-forwarded-host" not in sent.headers
    assert "x-forwarded-proto" not in sent.headers
    assert sent.headers["x-custom"] == "kept"
    assert sent.headers["host"] == "example.com"


def test_post_body_is_forwarded(client, origin):
    client.post("/", params={"key": "testing", "url": "https://example.com/submit"}, content=b"payload")
    sent = origin.requests[0]
    assert sent.method == "POST"
    assert sent.content == b"payload"


@pytest.mark.parametrize("method", ["GET", "DELETE"])
def test_non_body_methods_send_no_body(client, origin, method):
    client.request(method, "/", params={"key": "testing", "url": "https://example.com/"}, content=b"dropped")
    assert origin.requests[0].content == b""


def test_missing_key(client, origin, logger):
    response = client.get("/", params={"url": "https://example.com"})

    assert response.status_code == 403
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"error": "Unauthorized", "message": "Invalid or missing API key"}
    assert origin.requests == []
    assert logger.rejections[0][:2] == ("Unauthorized", 403)


def test_bad_key_with_malformed_url(client, origin):
    response = client.get("/", params={"key": "wrong", "url": "not a url"})
    assert response.status_code == 403
    assert response.json()["error"] == "Unauthorized"


def test_missing_url(client):
    response = client.get("/", params={"key": "testing"})
    assert response.status_code == 400
    assert response.json() == {
        "error": "Missing 'url' query parameter",
        "usage": "Add ?url=https://example.com/path to your request",
    }


def test_invalid_url(client):
    response = client.get("/", params={"key": "testing", "url": "https://[::1"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid URL provided"
    assert body["details"]


def test_http_scheme_rejected(client, origin):
    response = client.get("/", params={"key": "testing", "url": "http://example.com"})
    assert response.status_code == 400
    assert response.json() == {
        "error": "Only https URLs are supported",
        "usage": "Use https:// URLs (e.g., ?url=https://example.com/path)",
    }
    assert origin.requests == []


def test_missing_host(client):
    response = client.get("/", params={"key": "testing", "url": "https:///nohost"})
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid URL: missing hostname"}


@pytest.mark.parametrize(
    "url",
    ["https://169.254.169.254/latest/meta-data", "https://localhost:8080/x", "https://192.168.0.10/"],
)
def test_forbidden_hosts(client, origin, url):
    response = client.get("/", params={"key": "testing", "url": url})
    assert response.status_code == 403
    assert response.json() == {
        "error": "Forbidden",
        "message": "Requests to private or internal hosts are not allowed",
    }
    assert origin.requests == []


def test_backend_provision_failure(client, origin):
    response = client.get("/", params={"key": "testing", "url": "https://example.com:0/"})
    assert response.status_code == 502
    body = response.json()
    assert body["error"] == "Failed to create backend"
    assert body["target"] == "https://example.com:0/"
    assert origin.requests == []


def test_unreachable_origin(client, origin, logger):
    origin.error = httpx.ConnectError("Connection refused")
    response = client.get("/", params={"key": "testing", "url": "https://example.com/foo"})

    assert response.status_code == 502
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {
        "error": "Failed to fetch from origin",
        "details": "Connection refused",
        "target": "https://example.com/foo",
    }
    assert logger.errors and logger.rejections == []


def test_custom_secret(config, logger, transport, origin):
    config.auth.shared_secret = "s3cret"
    with TestClient(create_app(config, logger, transport=transport)) as client:
        assert client.get("/", params={"key": "testing", "url": "https://example.com/"}).status_code == 403
        assert client.get("/", params={"key": "s3cret", "url": "https://example.com/"}).status_code == 200


def test_host_with_space_is_rejected(client, origin):
    response = client.get("/", params={"key": "testing", "url": "https://exa mple.com/"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid URL provided"
    assert origin.requests == []


def test_non_ascii_header_reaches_origin_unchanged(client, origin):
    response = client.get(
        "/",
        params={"key": "testing", "url": "https://example.com/"},
        headers={"X-Name": "café".encode()},
    )
    assert response.status_code == 200
    raw = dict((name.lower(), value) for name, value in origin.requests[0].headers.raw)
    assert raw[b"x-name"] == "café".encode()
