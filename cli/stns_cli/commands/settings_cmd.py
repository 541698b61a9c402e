from __future__ import annotations

import typer

from .. import console
from ..config import config_path, load_config, save_config

app = typer.Typer(help="Manage local CLI settings (~/.config/stns/config.toml).")


@app.command("show")
def show_settings():
    cfg = load_config()
    token_state = "(set)" if cfg.auth_token.strip() else "(empty)"
    password_state = "(set)" if cfg.password else "(empty)"
    console.console.print(
        f"endpoint={cfg.endpoint} token={token_state} user={cfg.user or '-'} password={password_state} "
        f"private_key={cfg.private_key_path or '-'} skip_verify={cfg.tls.skip_verify}"
    )
    console.info(f"config file: {config_path()}")


@app.command("set")
def set_setting(
        endpoint: str | None = typer.Option(None, "--endpoint", help="Directory endpoint (https://, http:// or unix://)."),
        auth_token: str | None = typer.Option(None, "--auth-token", help="Token sent as 'Authorization: token ...'."),
        user: str | None = typer.Option(None, "--user", help="Basic auth user."),
        password: str | None = typer.Option(None, "--password", help="Basic auth password."),
        private_key: str | None = typer.Option(None, "--private-key", help="Private key used by `sign`."),
        http_proxy: str | None = typer.Option(None, "--http-proxy", help="Proxy URL."),
        tls_ca: str | None = typer.Option(None, "--tls-ca", help="CA bundle (PEM)."),
        tls_cert: str | None = typer.Option(None, "--tls-cert", help="Client certificate (PEM)."),
        tls_key: str | None = typer.Option(None, "--tls-key", help="Client key (PEM)."),
        skip_verify: bool | None = typer.Option(
            None, "--skip-verify/--verify", help="Disable TLS certificate verification (insecure)."
        ),
):
    cfg = load_config()
    if endpoint is not None:
        cfg.endpoint = endpoint.strip()
        if not cfg.endpoint:
            console.err("Endpoint cannot be empty.")
            raise typer.Exit(code=2)
    if auth_token is not None:
        cfg.auth_token = auth_token.strip()
    if user is not None:
        cfg.user = user.strip()
    if password is not None:
        cfg.password = password
    if private_key is not None:
        cfg.private_key_path = private_key.strip()
    if http_proxy is not None:
        cfg.http_proxy = http_proxy.strip()
    if tls_ca is not None:
        cfg.tls.ca = tls_ca.strip()
    if tls_cert is not None:
        cfg.tls.cert = tls_cert.strip()
    if tls_key is not None:
        cfg.tls.key = tls_key.strip()
    if skip_verify is not None:
        cfg.tls.skip_verify = skip_verify
    saved = save_config(cfg)
    console.ok(f"Settings updated: {saved}")
    if cfg.tls.skip_verify:
        console.warn("TLS certificate verification is disabled.")
    if bool(cfg.tls.cert) != bool(cfg.tls.key):
        console.warn("--tls-cert and --tls-key must be set together; requests will fail until both are set.")
