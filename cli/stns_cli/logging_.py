from __future__ import annotations

import logging

LIB_LOGGER = "stns_client"


def setup_logging(verbose: bool) -> None:
    """Library logs go to stderr; retries and proxy decisions only show with -v."""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger(LIB_LOGGER).setLevel(logging.DEBUG if verbose else logging.WARNING)

    # httpx logs every request at INFO, httpcore traces every socket op at DEBUG
    logging.getLogger("httpx").setLevel(logging.INFO if verbose else logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
