from __future__ import annotations

import json
import socketserver
import ssl
import threading
from http.server import BaseHTTPRequestHandler

import httpx
import pytest

from stns_client import ClientOptions, ConfigError, NotFound, RequestFailure, TransportError, TrustConfig
from stns_client import transport as transport_mod
from stns_client.headers import basic_auth_value, filter_response_headers
from stns_client.transport import EndpointKind, Transport, build_transport, join_url_path

ENDPOINT = "https://directory.example/v1/"


def _transport(handler, **opts) -> Transport:
    return Transport(ENDPOINT, ClientOptions(**opts), transport=httpx.MockTransport(handler))


@pytest.fixture
def no_env_proxy(monkeypatch):
    for name in ("http_proxy", "https_proxy", "all_proxy", "no_proxy",
                 "HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "NO_PROXY"):
        monkeypatch.delenv(name, raising=False)


def test_execute_returns_response_on_200() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/users/pyama"
        return httpx.Response(200, content=b'{"id":1001}')

    with _transport(handler) as t:
        resp = t.request("GET", "users/pyama", "")

    assert resp.status_code == 200
    assert resp.body == b'{"id":1001}'
    assert resp.headers == {}


def test_execute_non_200_raises_with_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, content=b"not found", headers={"User-Lowest-Id": "1000"})

    with _transport(handler) as t:
        with pytest.raises(RequestFailure) as exc_info:
            t.request("GET", "users/pyama", "")

    failure = exc_info.value
    assert isinstance(failure, NotFound)
    assert failure.response.status_code == 404
    assert failure.response.body == b"not found"
    assert failure.response.headers == {"User-Lowest-Id": "1000"}
    assert "404" in str(failure)
    assert "not found" in str(failure)


def test_non_retryable_status_is_not_retried() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(401, content=b"denied")

    with _transport(handler) as t:
        with pytest.raises(RequestFailure) as exc_info:
            t.request("GET", "users")

    assert len(calls) == 1
    assert exc_info.value.status_code == 401
    assert not isinstance(exc_info.value, NotFound)


def test_query_is_attached_verbatim() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return httpx.Response(200, content=b"[]")

    with _transport(handler) as t:
        t.request("GET", "users", "name=pyama&id=1001")

    assert seen["url"] == "https://directory.example/v1/users?name=pyama&id=1001"


def test_endpoint_userinfo_is_kept() -> None:
    mock = httpx.MockTransport(lambda r: httpx.Response(200))
    with Transport("https://u:p@directory.example/v1/", ClientOptions(), transport=mock) as t:
        url = t.request_url("users", "name=pyama")
    assert url.userinfo == b"u:p"
    assert str(url) == "https://u:p@directory.example/v1/users?name=pyama"


def test_redirect_is_followed() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.path)
        if request.url.path == "/v1/users":
            return httpx.Response(301, headers={"Location": "/v1/users/"})
        return httpx.Response(200, content=b"[]")

    with _transport(handler, auth_token="abc") as t:
        resp = t.request("GET", "users")

    assert resp.status_code == 200
    assert resp.body == b"[]"
    assert seen == ["/v1/users", "/v1/users/"]


def test_only_get_is_supported() -> None:
    with _transport(lambda r: httpx.Response(200)) as t:
        with pytest.raises(ValueError):
            t.request("POST", "users")


@pytest.mark.parametrize(
    "base, path, expected",
    [
        ("/v1/", "users/pyama", "/v1/users/pyama"),
        ("/v1", "/users", "/v1/users"),
        ("", "users", "/users"),
        ("/", "", "/"),
        ("/v1/", "groups/", "/v1/groups"),
    ],
)
def test_join_url_path(base: str, path: str, expected: str) -> None:
    assert join_url_path(base, path) == expected


def test_retry_ceiling_makes_n_plus_one_attempts(monkeypatch) -> None:
    monkeypatch.setattr(transport_mod.time, "sleep", lambda _: None)
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    with _transport(handler, request_retry=2) as t:
        with pytest.raises(TransportError) as exc_info:
            t.request("GET", "users")

    assert len(attempts) == 3
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


def test_transient_server_error_is_retried(monkeypatch) -> None:
    monkeypatch.setattr(transport_mod.time, "sleep", lambda _: None)
    statuses = iter([503, 502, 200])

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(next(statuses), content=b"ok")

    with _transport(handler) as t:
        resp = t.request("GET", "users")

    assert resp.status_code == 200


def test_server_error_surfaces_after_retries(monkeypatch) -> None:
    monkeypatch.setattr(transport_mod.time, "sleep", lambda _: None)
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, content=b"boom")

    with _transport(handler, request_retry=1) as t:
        with pytest.raises(RequestFailure) as exc_info:
            t.request("GET", "users")

    assert len(calls) == 2
    assert exc_info.value.status_code == 500
    assert exc_info.value.body == b"boom"


def test_request_is_decorated() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["headers"] = request.headers
        return httpx.Response(200)

    with _transport(
            handler,
            auth_token="abc",
            user="alice",
            password="secret",
            http_headers={"X-Tenant": "blue"},
    ) as t:
        t.request("GET", "users")

    headers = seen["headers"]
    assert headers["user-agent"].startswith("stns-client/")
    assert headers["x-tenant"] == "blue"
    auth = headers.get_list("authorization")
    assert "token abc" in auth
    assert basic_auth_value("alice", "secret") in auth


def test_user_agent_overrides_custom_header() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["ua"] = request.headers.get_list("user-agent")
        return httpx.Response(200)

    with _transport(handler, user_agent="custom/2", http_headers={"User-Agent": "other"}) as t:
        t.request("GET", "users")

    assert seen["ua"] == ["custom/2"]


def test_basic_auth_needs_user_and_password() -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200)

    with _transport(handler, user="alice") as t:
        t.request("GET", "users")

    assert seen["auth"] is None


def test_filter_keeps_allow_listed_first_values() -> None:
    headers = httpx.Headers(
        [
            ("User-Highest-Id", "2000"),
            ("User-Highest-Id", "3000"),
            ("group-lowest-id", "10"),
            ("Set-Cookie", "session=1"),
            ("X-Request-Id", "abc"),
        ]
    )
    assert filter_response_headers(headers) == {"User-Highest-Id": "2000", "group-lowest-id": "10"}


def test_response_headers_are_filtered() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"User-Highest-Id": "2000", "Group-Lowest-Id": "5", "Server": "stns"},
            content=b"[]",
        )

    with _transport(handler) as t:
        resp = t.request("GET", "users")

    assert set(resp.headers) == {"User-Highest-Id", "Group-Lowest-Id"}
    assert resp.headers["User-Highest-Id"] == "2000"


def test_build_https_uses_default_verification_without_material(no_env_proxy) -> None:
    plan = build_transport(ENDPOINT, ClientOptions().with_defaults())
    assert plan.kind is EndpointKind.HTTPS
    assert plan.verify is True
    assert plan.uds is None
    assert plan.endpoint == ENDPOINT


def test_build_https_uses_custom_context(no_env_proxy) -> None:
    opts = ClientOptions(trust=TrustConfig(skip_verify=True)).with_defaults()
    plan = build_transport(ENDPOINT, opts)
    assert isinstance(plan.verify, ssl.SSLContext)


def test_build_https_with_bad_trust_fails() -> None:
    opts = ClientOptions(trust=TrustConfig(cert_path="/tmp/only-cert.pem")).with_defaults()
    with pytest.raises(ConfigError):
        build_transport(ENDPOINT, opts)


def test_ca_material_ignored_for_plain_http(no_env_proxy) -> None:
    opts = ClientOptions(trust=TrustConfig(ca_path="/nonexistent/ca.pem")).with_defaults()
    plan = build_transport("http://127.0.0.1:1104/v1", opts)
    assert plan.kind is EndpointKind.PLAIN
    assert plan.verify is True


@pytest.mark.parametrize("endpoint", ["http://127.0.0.1:1104/v1", "unix:///var/run/stns.sock"])
def test_unpaired_client_cert_fails_for_every_scheme(no_env_proxy, endpoint: str) -> None:
    opts = ClientOptions(trust=TrustConfig(key_path="/tmp/only-key.pem")).with_defaults()
    with pytest.raises(ConfigError):
        build_transport(endpoint, opts)


def test_build_unix_rewrites_endpoint() -> None:
    plan = build_transport("unix:///var/run/stns.sock", ClientOptions(http_proxy="http://p:3128").with_defaults())
    assert plan.kind is EndpointKind.UNIX
    assert plan.uds == "/var/run/stns.sock"
    assert plan.endpoint == "http://unix"
    assert plan.proxy is None


def test_build_unix_without_path_fails() -> None:
    with pytest.raises(ConfigError):
        build_transport("unix://", ClientOptions().with_defaults())


def test_keepalive_controls_pooling(no_env_proxy) -> None:
    off = build_transport("http://127.0.0.1", ClientOptions().with_defaults())
    on = build_transport("http://127.0.0.1", ClientOptions(http_keepalive=True).with_defaults())
    assert off.limits.max_keepalive_connections == 0
    assert on.limits.max_keepalive_connections != 0


def test_timeout_comes_from_options(no_env_proxy) -> None:
    plan = build_transport("http://127.0.0.1", ClientOptions(request_timeout_s=3).with_defaults())
    assert plan.timeout.connect == 3


def test_explicit_proxy_is_used(no_env_proxy) -> None:
    plan = build_transport(ENDPOINT, ClientOptions(http_proxy="http://proxy.local:3128").with_defaults())
    assert plan.proxy is not None
    assert plan.proxy.url.host == "proxy.local"
    assert plan.proxy.url.port == 3128


def test_malformed_proxy_falls_back_to_environment(no_env_proxy, monkeypatch) -> None:
    monkeypatch.setenv("https_proxy", "http://env-proxy.local:8080")
    plan = build_transport(ENDPOINT, ClientOptions(http_proxy="not-a-proxy").with_defaults())
    assert plan.proxy is not None
    assert plan.proxy.url.host == "env-proxy.local"


def test_malformed_proxy_without_environment_means_direct(no_env_proxy) -> None:
    plan = build_transport(ENDPOINT, ClientOptions(http_proxy="not-a-proxy").with_defaults())
    assert plan.proxy is None


def test_environment_proxy_respects_no_proxy(no_env_proxy, monkeypatch) -> None:
    monkeypatch.setenv("https_proxy", "http://env-proxy.local:8080")
    monkeypatch.setenv("no_proxy", "directory.example")
    plan = build_transport(ENDPOINT, ClientOptions().with_defaults())
    assert plan.proxy is None


class _EchoHandler(BaseHTTPRequestHandler):
    def do_GET(self) -> None:
        body = json.dumps({"path": self.path, "host": self.headers.get("Host")}).encode("utf-8")
        self.send_response(200)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("User-Highest-Id", "2000")
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, *args) -> None:
        pass


def test_unix_socket_endpoint_dials_socket_path(tmp_path) -> None:
    sock_path = str(tmp_path / "s.sock")
    server = socketserver.UnixStreamServer(sock_path, _EchoHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        with Transport(f"unix://{sock_path}", ClientOptions(request_timeout_s=5)) as t:
            resp = t.request("GET", "users", "name=pyama")
    finally:
        server.shutdown()
        server.server_close()

    data = json.loads(resp.body)
    assert resp.status_code == 200
    assert data["path"] == "/users?name=pyama"
    assert data["host"] == "unix"
    assert resp.headers == {"User-Highest-Id": "2000"}
