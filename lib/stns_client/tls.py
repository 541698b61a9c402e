from __future__ import annotations

import logging
import ssl

from .config_types import TrustConfig
from .errors import ConfigError

log = logging.getLogger(__name__)


def check_pairing(trust: TrustConfig) -> None:
    if bool(trust.cert_path) != bool(trust.key_path):
        raise ConfigError("tls client certificate and key must be configured together")


def resolve_trust(trust: TrustConfig) -> ssl.SSLContext | None:
    """Build a client-private SSL context from the trust configuration.

    Returns ``None`` when nothing custom is configured; callers must then use
    the default verifying TLS setup, never plain text.

    ``skip_verify`` turns off certificate-chain and hostname validation. It is
    an insecure escape hatch: the connection is still encrypted but the peer
    is no longer authenticated.
    """
    check_pairing(trust)

    if not (trust.ca_path or trust.cert_path or trust.skip_verify):
        return None

    try:
        # With a cafile, only that bundle is trusted, not the system store.
        ctx = ssl.create_default_context(cafile=trust.ca_path or None)
    except (OSError, ssl.SSLError) as e:
        raise ConfigError(f"cannot load CA bundle {trust.ca_path!r}: {e}") from e

    if trust.cert_path:
        try:
            ctx.load_cert_chain(trust.cert_path, trust.key_path)
        except (OSError, ssl.SSLError) as e:
            raise ConfigError(f"cannot load client certificate {trust.cert_path!r}: {e}") from e

    if trust.skip_verify:
        log.warning("tls certificate verification is disabled")
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE

    return ctx
