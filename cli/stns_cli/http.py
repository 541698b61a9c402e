from __future__ import annotations

import typer
from stns_client import StnsClient

from .config import AppConfig, resolve_endpoint, to_options


def global_endpoint(ctx: typer.Context) -> str | None:
    """``--endpoint`` given before the command name, if any."""
    return (ctx.obj or {}).get("endpoint")


def make_client(cfg: AppConfig, *, endpoint_override: str | None = None) -> StnsClient:
    return StnsClient(resolve_endpoint(cfg, endpoint_override), to_options(cfg))
