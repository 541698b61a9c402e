from __future__ import annotations

import typer
from rich.table import Table
from stns_client import ConfigError, NotFound, StnsClientError
from stns_client.models import Group, User

from .. import console
from ..config import load_config
from ..http import global_endpoint, make_client


def _fail(what: str, exc: StnsClientError) -> typer.Exit:
    if isinstance(exc, NotFound):
        console.err(f"{what} not found.")
    elif isinstance(exc, ConfigError):
        console.err(f"Invalid configuration: {exc}")
    else:
        console.err(f"Failed to fetch {what}: {exc}")
    return typer.Exit(code=2)


def _print_users(users: list[User]) -> None:
    table = Table(title="Users")
    table.add_column("id", style="bold")
    table.add_column("name")
    table.add_column("group_id")
    table.add_column("directory")
    table.add_column("shell")
    table.add_column("keys")
    for u in users:
        table.add_row(str(u.id), u.name, str(u.group_id), u.directory or "-", u.shell or "-", str(len(u.keys)))
    console.console.print(table)


def _print_groups(groups: list[Group]) -> None:
    table = Table(title="Groups")
    table.add_column("id", style="bold")
    table.add_column("name")
    table.add_column("users")
    for g in groups:
        table.add_row(str(g.id), g.name, ", ".join(g.users) or "-")
    console.console.print(table)


def user(
        ctx: typer.Context,
        name: str | None = typer.Argument(None, help="User name."),
        user_id: int | None = typer.Option(None, "--id", help="Look up by numeric id instead."),
        endpoint: str | None = typer.Option(None, "--endpoint", help="Override directory endpoint."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """Show one user."""
    if not name and user_id is None:
        console.err("Provide a user name or --id.")
        raise typer.Exit(code=2)
    try:
        with make_client(load_config(), endpoint_override=endpoint or global_endpoint(ctx)) as client:
            found = client.get_user_by_id(user_id) if user_id is not None else client.get_user_by_name(name)
    except StnsClientError as e:
        raise _fail("user", e)
    except ValueError as e:
        console.err(f"Invalid user payload: {e}")
        raise typer.Exit(code=2)

    if json_out:
        console.print_json(found)
        return
    _print_users([found])


def users(
        ctx: typer.Context,
        endpoint: str | None = typer.Option(None, "--endpoint", help="Override directory endpoint."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """List users."""
    try:
        with make_client(load_config(), endpoint_override=endpoint or global_endpoint(ctx)) as client:
            items = client.list_users()
    except StnsClientError as e:
        raise _fail("users", e)
    except ValueError as e:
        console.err(f"Invalid users payload: {e}")
        raise typer.Exit(code=2)

    if json_out:
        console.print_json(items)
        return
    _print_users(items)


def group(
        ctx: typer.Context,
        name: str | None = typer.Argument(None, help="Group name."),
        group_id: int | None = typer.Option(None, "--id", help="Look up by numeric id instead."),
        endpoint: str | None = typer.Option(None, "--endpoint", help="Override directory endpoint."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """Show one group."""
    if not name and group_id is None:
        console.err("Provide a group name or --id.")
        raise typer.Exit(code=2)
    try:
        with make_client(load_config(), endpoint_override=endpoint or global_endpoint(ctx)) as client:
            found = client.get_group_by_id(group_id) if group_id is not None else client.get_group_by_name(name)
    except StnsClientError as e:
        raise _fail("group", e)
    except ValueError as e:
        console.err(f"Invalid group payload: {e}")
        raise typer.Exit(code=2)

    if json_out:
        console.print_json(found)
        return
    _print_groups([found])


def groups(
        ctx: typer.Context,
        endpoint: str | None = typer.Option(None, "--endpoint", help="Override directory endpoint."),
        json_out: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """List groups."""
    try:
        with make_client(load_config(), endpoint_override=endpoint or global_endpoint(ctx)) as client:
            items = client.list_groups()
    except StnsClientError as e:
        raise _fail("groups", e)
    except ValueError as e:
        console.err(f"Invalid groups payload: {e}")
        raise typer.Exit(code=2)

    if json_out:
        console.print_json(items)
        return
    _print_groups(items)
