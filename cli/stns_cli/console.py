from __future__ import annotations

from dataclasses import asdict, is_dataclass

from rich.console import Console
from rich.markup import escape

console = Console()


def _plain(data):
    if is_dataclass(data) and not isinstance(data, type):
        return asdict(data)
    if isinstance(data, list):
        return [_plain(item) for item in data]
    return data


def print_json(data) -> None:
    """Print directory records (dataclasses or lists of them) as JSON."""
    console.print_json(data=_plain(data))


def info(msg: str) -> None:
    console.print(f"[bold cyan]•[/] {escape(msg)}")


def ok(msg: str) -> None:
    console.print(f"[bold green]OK[/] {escape(msg)}")


def warn(msg: str) -> None:
    console.print(f"[bold yellow]WARN[/] {escape(msg)}")


def err(msg: str) -> None:
    console.print(f"[bold red]ERR[/] {escape(msg)}")
