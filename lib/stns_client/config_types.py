from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import Callable, Mapping

from .errors import ConfigError

__version__ = "0.1.0"

PRODUCT_NAME = "stns-client"
DEFAULT_USER_AGENT = f"{PRODUCT_NAME}/{__version__}"
DEFAULT_TIMEOUT_S = 15
DEFAULT_RETRY = 3

ENV_AUTH_TOKEN = "STNS_AUTH_TOKEN"
ENV_USER = "STNS_USER"
ENV_PASSWORD = "STNS_PASSWORD"
ENV_SKIP_VERIFY = "STNS_SKIP_VERIFY"
ENV_HTTP_PROXY = "STNS_HTTP_PROXY"
ENV_REQUEST_TIMEOUT = "STNS_REQUEST_TIMEOUT"
ENV_REQUEST_RETRY = "STNS_REQUEST_RETRY"
ENV_HTTP_KEEPALIVE = "STNS_HTTP_KEEPALIVE"
ENV_HTTP_HEADERS = "STNS_HTTP_HEADERS"
ENV_TLS_CA = "STNS_TLS_CA"
ENV_TLS_CERT = "STNS_TLS_CERT"
ENV_TLS_KEY = "STNS_TLS_KEY"
ENV_PRIVATE_KEY = "STNS_PRIVATE_KEY"

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class TrustConfig:
    ca_path: str = ""
    cert_path: str = ""
    key_path: str = ""
    # Disables peer certificate validation. Traffic is still encrypted.
    skip_verify: bool = False


@dataclass(frozen=True)
class ClientOptions:
    user_agent: str = ""
    request_timeout_s: float = 0
    request_retry: int = 0
    http_keepalive: bool = False
    http_proxy: str = ""
    http_headers: Mapping[str, str] = field(default_factory=dict)
    auth_token: str = ""
    user: str = ""
    password: str = ""
    trust: TrustConfig = field(default_factory=TrustConfig)
    private_key_path: str = ""
    private_key_password: str = ""

    def with_defaults(self) -> ClientOptions:
        """Fill zero-valued fields with the package defaults."""
        return replace(
            self,
            user_agent=self.user_agent or DEFAULT_USER_AGENT,
            request_timeout_s=self.request_timeout_s or DEFAULT_TIMEOUT_S,
            request_retry=self.request_retry or DEFAULT_RETRY,
        )

    def from_env(self, environ: Mapping[str, str] | None = None) -> ClientOptions:
        """Overlay STNS_* environment variables that are set onto these options.

        Raises ``ConfigError`` when a numeric variable does not parse.
        """
        env = os.environ if environ is None else environ
        changes: dict[str, object] = {}

        for key, attr in (
                (ENV_AUTH_TOKEN, "auth_token"),
                (ENV_USER, "user"),
                (ENV_PASSWORD, "password"),
                (ENV_HTTP_PROXY, "http_proxy"),
                (ENV_PRIVATE_KEY, "private_key_path"),
        ):
            if env.get(key):
                changes[attr] = env[key]

        if env.get(ENV_REQUEST_TIMEOUT):
            changes["request_timeout_s"] = _parse_number(env, ENV_REQUEST_TIMEOUT, float)
        if env.get(ENV_REQUEST_RETRY):
            changes["request_retry"] = _parse_number(env, ENV_REQUEST_RETRY, int)
        if env.get(ENV_HTTP_KEEPALIVE):
            changes["http_keepalive"] = _parse_bool(env[ENV_HTTP_KEEPALIVE])
        if env.get(ENV_HTTP_HEADERS):
            changes["http_headers"] = {**self.http_headers, **parse_header_list(env[ENV_HTTP_HEADERS])}

        trust_changes: dict[str, object] = {}
        for key, attr in ((ENV_TLS_CA, "ca_path"), (ENV_TLS_CERT, "cert_path"), (ENV_TLS_KEY, "key_path")):
            if env.get(key):
                trust_changes[attr] = env[key]
        if env.get(ENV_SKIP_VERIFY):
            trust_changes["skip_verify"] = _parse_bool(env[ENV_SKIP_VERIFY])
        if trust_changes:
            changes["trust"] = replace(self.trust, **trust_changes)

        return replace(self, **changes) if changes else self


def parse_header_list(raw: str) -> dict[str, str]:
    """Parse ``Name:value,Other:value`` into a mapping. Entries without a colon are skipped."""
    headers: dict[str, str] = {}
    for item in raw.split(","):
        name, sep, value = item.partition(":")
        name = name.strip()
        if not sep or not name:
            continue
        headers[name] = value.strip()
    return headers


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _parse_number(env: Mapping[str, str], key: str, convert: Callable[[str], float]) -> float:
    raw = env[key].strip()
    try:
        value = convert(raw)
    except ValueError as e:
        raise ConfigError(f"invalid {key}: {raw!r}") from e
    if value < 0:
        raise ConfigError(f"invalid {key}: {raw!r} is negative")
    return value
