from __future__ import annotations

import base64
import binascii

import typer
from stns_client import ConfigError, KeyUnavailable, StnsClientError, VerificationInconclusive

from .. import console
from ..config import load_config
from ..http import global_endpoint, make_client


def sign(
        ctx: typer.Context,
        message: str = typer.Argument(..., help="Message to sign."),
        endpoint: str | None = typer.Option(None, "--endpoint", help="Override directory endpoint."),
):
    """Sign MESSAGE with the configured private key and print the signature (base64)."""
    try:
        with make_client(load_config(), endpoint_override=endpoint or global_endpoint(ctx)) as client:
            signature = client.sign(message.encode("utf-8"))
    except KeyUnavailable as e:
        console.err(f"No signing key: {e}")
        raise typer.Exit(code=2)
    except ConfigError as e:
        console.err(f"Invalid configuration: {e}")
        raise typer.Exit(code=2)
    except StnsClientError as e:
        console.err(f"Signing failed: {e}")
        raise typer.Exit(code=2)
    console.console.print(base64.b64encode(signature).decode("ascii"), soft_wrap=True)


def verify(
        ctx: typer.Context,
        name: str = typer.Argument(..., help="User whose published keys are checked."),
        message: str = typer.Argument(..., help="Signed message."),
        signature: str = typer.Argument(..., help="Signature, base64."),
        endpoint: str | None = typer.Option(None, "--endpoint", help="Override directory endpoint."),
):
    """Verify SIGNATURE over MESSAGE against NAME's keys. Exit 1 on a bad signature."""
    try:
        raw = base64.b64decode(signature, validate=True)
    except (binascii.Error, ValueError):
        console.err("Signature must be base64.")
        raise typer.Exit(code=2)

    try:
        with make_client(load_config(), endpoint_override=endpoint or global_endpoint(ctx)) as client:
            valid = client.verify_with_user(name, message.encode("utf-8"), raw)
    except VerificationInconclusive as e:
        console.err(f"Verification could not run: {e}")
        raise typer.Exit(code=2)
    except StnsClientError as e:
        console.err(f"Verification failed: {e}")
        raise typer.Exit(code=2)

    if not valid:
        console.err(f"Signature does not match {name}.")
        raise typer.Exit(code=1)
    console.ok(f"Signature verified for {name}.")
