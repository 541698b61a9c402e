from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from typing import Any

import tomli_w
from platformdirs import user_config_dir

from stns_client import ClientOptions, TrustConfig

APP_NAME = "stns"
CONFIG_FILENAME = "config.toml"
ENDPOINT_DEFAULT = "http://127.0.0.1:1104/v1"
ENV_ENDPOINT = "STNS_ENDPOINT"


@dataclass
class TlsConfig:
    ca: str = ""
    cert: str = ""
    key: str = ""
    skip_verify: bool = False


@dataclass
class AppConfig:
    endpoint: str = ENDPOINT_DEFAULT
    auth_token: str = ""
    user: str = ""
    password: str = ""
    private_key_path: str = ""
    http_proxy: str = ""
    request_timeout_s: float = 0
    request_retry: int = 0
    tls: TlsConfig = field(default_factory=TlsConfig)


def config_path() -> str:
    return f"{user_config_dir(APP_NAME)}/{CONFIG_FILENAME}"


def default_config() -> AppConfig:
    return AppConfig()


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)


def to_toml(cfg: AppConfig) -> dict[str, Any]:
    return {
        "endpoint": cfg.endpoint,
        "auth_token": cfg.auth_token,
        "user": cfg.user,
        "password": cfg.password,
        "private_key_path": cfg.private_key_path,
        "http_proxy": cfg.http_proxy,
        "request_timeout_s": cfg.request_timeout_s,
        "request_retry": cfg.request_retry,
        "tls": {
            "ca": cfg.tls.ca,
            "cert": cfg.tls.cert,
            "key": cfg.tls.key,
            "skip_verify": cfg.tls.skip_verify,
        },
    }


def from_toml(data: dict[str, Any]) -> AppConfig:
    tls_raw = data.get("tls") or {}
    if not isinstance(tls_raw, dict):
        tls_raw = {}
    try:
        timeout = float(data.get("request_timeout_s") or 0)
    except (TypeError, ValueError):
        timeout = 0
    try:
        retry = int(data.get("request_retry") or 0)
    except (TypeError, ValueError):
        retry = 0
    return AppConfig(
        endpoint=str(data.get("endpoint") or ENDPOINT_DEFAULT).strip(),
        auth_token=str(data.get("auth_token") or ""),
        user=str(data.get("user") or ""),
        password=str(data.get("password") or ""),
        private_key_path=str(data.get("private_key_path") or ""),
        http_proxy=str(data.get("http_proxy") or ""),
        request_timeout_s=timeout,
        request_retry=retry,
        tls=TlsConfig(
            ca=str(tls_raw.get("ca") or ""),
            cert=str(tls_raw.get("cert") or ""),
            key=str(tls_raw.get("key") or ""),
            skip_verify=bool(tls_raw.get("skip_verify") or False),
        ),
    )


def load_config() -> AppConfig:
    path = config_path()
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return from_toml(data)
    except FileNotFoundError:
        return default_config()


def save_config(cfg: AppConfig) -> str:
    path = config_path()
    ensure_parent_dir(path)
    with open(path, "wb") as f:
        f.write(tomli_w.dumps(to_toml(cfg)).encode("utf-8"))
    # may hold a password and token
    os.chmod(path, 0o600)
    return path


def resolve_endpoint(cfg: AppConfig, override: str | None = None) -> str:
    if override:
        return override.strip()
    env_value = os.getenv(ENV_ENDPOINT, "").strip()
    if env_value:
        return env_value
    return cfg.endpoint or ENDPOINT_DEFAULT


def to_options(cfg: AppConfig) -> ClientOptions:
    return ClientOptions(
        auth_token=cfg.auth_token,
        user=cfg.user,
        password=cfg.password,
        private_key_path=cfg.private_key_path,
        http_proxy=cfg.http_proxy,
        request_timeout_s=cfg.request_timeout_s,
        request_retry=cfg.request_retry,
        trust=TrustConfig(
            ca_path=cfg.tls.ca,
            cert_path=cfg.tls.cert,
            key_path=cfg.tls.key,
            skip_verify=cfg.tls.skip_verify,
        ),
    )
