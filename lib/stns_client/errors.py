from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .transport import Response


class StnsClientError(Exception):
    """Base client error."""


class ConfigError(StnsClientError):
    """Invalid client configuration detected before any network activity."""


class TransportError(StnsClientError):
    """Transport/network layer error, raised once retries are exhausted."""


class RequestFailure(StnsClientError):
    """The server answered with a status other than 200.

    The populated response stays available on ``.response`` so callers can
    inspect status, pagination headers and body.
    """

    def __init__(self, response: Response):
        self.response = response
        self.status_code = response.status_code
        self.body = response.body
        text = response.body.decode("utf-8", errors="replace")
        super().__init__(f"status code={response.status_code}, body={text}")


class NotFound(RequestFailure):
    """404 from the directory."""


class KeyUnavailable(StnsClientError):
    """No local signing key is configured or it cannot be loaded."""


class SigningError(StnsClientError):
    """Cryptographic failure while signing."""


class VerificationInconclusive(StnsClientError):
    """The identity or its keys could not be fetched, so no verification ran."""
