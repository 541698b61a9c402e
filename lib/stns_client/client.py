from __future__ import annotations

from urllib.parse import quote

import httpx

from .config_types import ClientOptions
from .models import Group, IdRange, User, decode_group, decode_groups, decode_user, decode_users
from .retry import RetryPolicy
from .signature import Signer, verify_with_identity
from .transport import Response, Transport


class StnsClient:
    def __init__(
            self,
            endpoint: str,
            options: ClientOptions | None = None,
            *,
            use_env: bool = True,
            signer: Signer | None = None,
            transport: httpx.BaseTransport | None = None,
            retry_policy: RetryPolicy | None = None,
    ):
        opts = options or ClientOptions()
        if use_env:
            opts = opts.from_env()
        self._t = Transport(endpoint, opts, transport=transport, retry_policy=retry_policy)
        self._signer = signer

    @property
    def endpoint(self) -> str:
        return self._t.endpoint

    @property
    def options(self) -> ClientOptions:
        return self._t.options

    def close(self) -> None:
        self._t.close()

    def __enter__(self) -> StnsClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def request(self, path: str, query: str = "") -> Response:
        return self._t.request("GET", path, query)

    # --- users / groups ---
    def get_user_by_name(self, name: str) -> User:
        return decode_user(self.request("users", f"name={quote(name, safe='')}").body)

    def get_user_by_id(self, user_id: int) -> User:
        return decode_user(self.request("users", f"id={int(user_id)}").body)

    def list_users(self) -> list[User]:
        return decode_users(self.request("users").body)

    def get_group_by_name(self, name: str) -> Group:
        return decode_group(self.request("groups", f"name={quote(name, safe='')}").body)

    def get_group_by_id(self, group_id: int) -> Group:
        return decode_group(self.request("groups", f"id={int(group_id)}").body)

    def list_groups(self) -> list[Group]:
        return decode_groups(self.request("groups").body)

    def user_id_range(self) -> IdRange:
        return IdRange.from_headers(self.request("users").headers, "user")

    def group_id_range(self) -> IdRange:
        return IdRange.from_headers(self.request("groups").headers, "group")

    # --- signatures ---
    def signer(self) -> Signer:
        if self._signer is not None:
            return self._signer
        return Signer.from_options(self.options)

    def sign(self, payload: bytes) -> bytes:
        return self.signer().sign(payload)

    def verify_with_user(self, name: str, payload: bytes, signature: bytes) -> bool:
        return verify_with_identity(self._t, name, payload, signature)
