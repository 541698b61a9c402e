from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping


def _as_int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None or value == "":
        return 0
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"{key}: expected an integer, got {type(value).__name__}")
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"{key}: {e}") from e


def _as_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        raise ValueError(f"{key}: expected a string, got {type(value).__name__}")
    return str(value)


def _as_str_list(data: Mapping[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{key}: expected a list, got {type(value).__name__}")
    return [str(v) for v in value if v]


@dataclass(frozen=True)
class User:
    id: int
    name: str
    password: str = ""
    group_id: int = 0
    directory: str = ""
    shell: str = ""
    gecos: str = ""
    keys: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> User:
        """Raises ``ValueError`` when a field has the wrong JSON type."""
        return cls(
            id=_as_int(data, "id"),
            name=_as_str(data, "name"),
            password=_as_str(data, "password"),
            group_id=_as_int(data, "group_id"),
            directory=_as_str(data, "directory"),
            shell=_as_str(data, "shell"),
            gecos=_as_str(data, "gecos"),
            keys=_as_str_list(data, "keys"),
        )


@dataclass(frozen=True)
class Group:
    id: int
    name: str
    users: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Group:
        return cls(
            id=_as_int(data, "id"),
            name=_as_str(data, "name"),
            users=_as_str_list(data, "users"),
        )


@dataclass(frozen=True)
class IdRange:
    lowest: int | None
    highest: int | None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str], kind: str) -> IdRange:
        lowered = {k.lower(): v for k, v in headers.items()}
        return cls(
            lowest=_int_or_none(lowered.get(f"{kind}-lowest-id")),
            highest=_int_or_none(lowered.get(f"{kind}-highest-id")),
        )


def _int_or_none(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _records(body: bytes) -> list[dict[str, Any]]:
    data = json.loads(body or b"null")
    if data is None:
        return []
    if isinstance(data, dict):
        return [data]
    if isinstance(data, list) and all(isinstance(item, dict) for item in data):
        return data
    raise ValueError(f"unexpected record payload: {type(data).__name__}")


def decode_users(body: bytes) -> list[User]:
    return [User.from_dict(item) for item in _records(body)]


def decode_groups(body: bytes) -> list[Group]:
    return [Group.from_dict(item) for item in _records(body)]


def decode_user(body: bytes) -> User:
    """Decode a single-user lookup; lookups may answer with an object or a one-item list."""
    users = decode_users(body)
    if not users:
        raise ValueError("empty user payload")
    return users[0]


def decode_group(body: bytes) -> Group:
    groups = decode_groups(body)
    if not groups:
        raise ValueError("empty group payload")
    return groups[0]
