from __future__ import annotations

import logging
import posixpath
import ssl
import string
import time
import urllib.request
from dataclasses import dataclass
from enum import Enum
from urllib.parse import quote, urlsplit

import httpx

from .config_types import ClientOptions
from .errors import ConfigError, NotFound, RequestFailure, TransportError
from .headers import decorate_request, filter_response_headers
from .retry import RetryPolicy
from .tls import check_pairing, resolve_trust

log = logging.getLogger(__name__)

# Requests to a unix socket still need an http URL; the host part is never dialled.
UNIX_PLACEHOLDER_ENDPOINT = "http://unix"


class EndpointKind(Enum):
    HTTPS = "https"
    UNIX = "unix"
    PLAIN = "plain"


def endpoint_kind(endpoint: str) -> EndpointKind:
    lowered = endpoint.strip().lower()
    if lowered.startswith("https"):
        return EndpointKind.HTTPS
    if lowered.startswith("unix"):
        return EndpointKind.UNIX
    return EndpointKind.PLAIN


@dataclass(frozen=True)
class Response:
    status_code: int
    headers: dict[str, str]
    body: bytes

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class TransportPlan:
    """How connections to one endpoint are established, resolved once per client."""

    endpoint: str
    kind: EndpointKind
    verify: ssl.SSLContext | bool
    uds: str | None
    proxy: httpx.Proxy | None
    timeout: httpx.Timeout
    limits: httpx.Limits

    def http_transport(self) -> httpx.HTTPTransport:
        return httpx.HTTPTransport(
            verify=self.verify,
            uds=self.uds,
            proxy=self.proxy,
            limits=self.limits,
        )


def build_transport(endpoint: str, options: ClientOptions) -> TransportPlan:
    kind = endpoint_kind(endpoint)
    verify: ssl.SSLContext | bool = True
    uds: str | None = None

    try:
        check_pairing(options.trust)
        ctx = resolve_trust(options.trust) if kind is EndpointKind.HTTPS else None
    except ConfigError as e:
        log.error("make tls config error: %s", e)
        raise

    if ctx is not None:
        verify = ctx
    if kind is EndpointKind.UNIX:
        uds = unix_socket_path(endpoint)
        endpoint = UNIX_PLACEHOLDER_ENDPOINT

    proxy = None if kind is EndpointKind.UNIX else select_proxy(endpoint, options.http_proxy)

    if options.http_keepalive:
        limits = httpx.Limits()
    else:
        # Idle connections above the keep-alive limit are closed, so none are reused.
        limits = httpx.Limits(max_keepalive_connections=0)

    return TransportPlan(
        endpoint=endpoint,
        kind=kind,
        verify=verify,
        uds=uds,
        proxy=proxy,
        timeout=httpx.Timeout(options.request_timeout_s),
        limits=limits,
    )


def unix_socket_path(endpoint: str) -> str:
    try:
        parts = urlsplit(endpoint)
    except ValueError as e:
        log.error("unix schema URL parse error: %s", e)
        raise ConfigError(f"invalid unix socket endpoint {endpoint!r}: {e}") from e
    if not parts.path:
        raise ConfigError(f"unix socket endpoint {endpoint!r} has no socket path")
    return parts.path


def select_proxy(endpoint: str, http_proxy: str) -> httpx.Proxy | None:
    """Explicit proxy if it parses, else whatever the environment says for the endpoint."""
    if http_proxy:
        try:
            return httpx.Proxy(http_proxy)
        except (ValueError, httpx.InvalidURL) as e:
            # Malformed values fall back to the environment instead of failing.
            log.debug("ignoring malformed http_proxy %r: %s", http_proxy, e)
    return environment_proxy(endpoint)


def environment_proxy(endpoint: str) -> httpx.Proxy | None:
    parts = urlsplit(endpoint)
    proxies = urllib.request.getproxies()
    url = proxies.get(parts.scheme) or proxies.get("all")
    if not url or (parts.hostname and urllib.request.proxy_bypass(parts.hostname)):
        return None
    if "://" not in url:
        url = f"http://{url}"
    try:
        return httpx.Proxy(url)
    except (ValueError, httpx.InvalidURL) as e:
        log.debug("ignoring malformed environment proxy %r: %s", url, e)
        return None


def join_url_path(base_path: str, request_path: str) -> str:
    joined = posixpath.normpath("/".join(["", base_path, request_path]))
    return "/" + joined.lstrip("/")


class Transport:
    """Retrying GET executor bound to a single directory endpoint."""

    def __init__(
            self,
            endpoint: str,
            options: ClientOptions | None = None,
            *,
            transport: httpx.BaseTransport | None = None,
            retry_policy: RetryPolicy | None = None,
    ):
        self._opt = (options or ClientOptions()).with_defaults()
        self._plan = build_transport(endpoint, self._opt)
        self._retry = retry_policy or RetryPolicy(max_retries=self._opt.request_retry)
        self._client = httpx.Client(
            transport=transport or self._plan.http_transport(),
            timeout=self._plan.timeout,
            follow_redirects=True,
            trust_env=False,
        )

    @property
    def endpoint(self) -> str:
        return self._plan.endpoint

    @property
    def kind(self) -> EndpointKind:
        return self._plan.kind

    @property
    def options(self) -> ClientOptions:
        return self._opt

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> Transport:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def request_url(self, path: str, query: str = "") -> httpx.URL:
        base = httpx.URL(self.endpoint)
        url = base.copy_with(path=join_url_path(base.path, path))
        if query:
            # Attached as given; only bytes outside printable ASCII get escaped.
            url = url.copy_with(query=quote(query, safe=string.punctuation).encode("ascii"))
        return url

    def request(self, method: str, path: str, query: str = "") -> Response:
        """Perform a GET and return the response.

        Raises ``TransportError`` when the server could not be reached after all
        retries and ``RequestFailure`` (carrying the response) for any status
        other than 200.
        """
        if method.upper() != "GET":
            raise ValueError(f"unsupported method {method!r}: only GET is allowed")

        url = self.request_url(path, query)
        attempt = 0
        while True:
            attempt += 1
            request = self._client.build_request("GET", url)
            decorate_request(request, self._opt)
            try:
                response = self._send(request)
            except httpx.TransportError as e:
                if not self._retry.should_retry_error(e) or attempt > self._retry.max_retries:
                    log.error("http request error: %s", e)
                    raise TransportError(f"GET {url} failed: {e}") from e
                log.debug("GET %s failed (attempt %d): %s", url, attempt, e)
            else:
                if response.status_code == 200:
                    return response
                if not self._retry.should_retry_status(response.status_code) or attempt > self._retry.max_retries:
                    if response.status_code == 404:
                        raise NotFound(response)
                    raise RequestFailure(response)
                log.debug("GET %s returned %d (attempt %d)", url, response.status_code, attempt)

            time.sleep(self._retry.compute_backoff(attempt))

    def _send(self, request: httpx.Request) -> Response:
        resp = self._client.send(request, stream=True)
        try:
            body = resp.read()
        finally:
            resp.close()
        return Response(
            status_code=resp.status_code,
            headers=filter_response_headers(resp.headers),
            body=body,
        )
