from __future__ import annotations

import base64

import httpx

from .config_types import ClientOptions

# Pagination metadata defined by the directory protocol. Everything else is dropped.
SUPPORTED_HEADERS = frozenset(
    {
        "user-highest-id",
        "user-lowest-id",
        "group-highest-id",
        "group-lowest-id",
    }
)


def decorate_request(request: httpx.Request, options: ClientOptions) -> None:
    """Attach identity headers and credentials to an outgoing request in place."""
    for name, value in options.http_headers.items():
        _add_header(request, name, value)

    request.headers["User-Agent"] = options.user_agent

    if options.auth_token:
        request.headers["Authorization"] = f"token {options.auth_token}"

    # Sent alongside the token header; the server picks which one it honours.
    if options.user and options.password:
        _add_header(request, "Authorization", basic_auth_value(options.user, options.password))


def basic_auth_value(user: str, password: str) -> str:
    userpass = f"{user}:{password}".encode("utf-8")
    return "Basic " + base64.b64encode(userpass).decode("ascii")


def _add_header(request: httpx.Request, name: str, value: str) -> None:
    if name not in request.headers:
        request.headers[name] = value
        return
    request.headers = httpx.Headers([*request.headers.multi_items(), (name, value)])


def filter_response_headers(headers: httpx.Headers) -> dict[str, str]:
    """Keep the first value of each allow-listed header, with its received name."""
    kept: dict[str, str] = {}
    seen: set[str] = set()
    for raw_name, raw_value in headers.raw:
        name = raw_name.decode(headers.encoding)
        lowered = name.lower()
        if lowered not in SUPPORTED_HEADERS or lowered in seen:
            continue
        seen.add(lowered)
        kept[name] = raw_value.decode(headers.encoding)
    return kept
