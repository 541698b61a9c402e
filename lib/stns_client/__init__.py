from .client import StnsClient
from .config_types import ClientOptions, TrustConfig, __version__
from .errors import (
    ConfigError,
    KeyUnavailable,
    NotFound,
    RequestFailure,
    SigningError,
    StnsClientError,
    TransportError,
    VerificationInconclusive,
)
from .signature import Signer
from .transport import Response

__all__ = [
    "StnsClient",
    "ClientOptions",
    "TrustConfig",
    "Response",
    "Signer",
    "StnsClientError",
    "ConfigError",
    "TransportError",
    "RequestFailure",
    "NotFound",
    "KeyUnavailable",
    "SigningError",
    "VerificationInconclusive",
    "__version__",
]
