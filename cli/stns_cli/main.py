from __future__ import annotations

import typer

from .commands import settings_cmd, sign_cmd, users_cmd
from .logging_ import setup_logging


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="stns",
        help="STNS directory client",
        no_args_is_help=True,
    )

    app.command("user")(users_cmd.user)
    app.command("users")(users_cmd.users)
    app.command("group")(users_cmd.group)
    app.command("groups")(users_cmd.groups)
    app.command("sign")(sign_cmd.sign)
    app.command("verify")(sign_cmd.verify)
    app.add_typer(settings_cmd.app, name="settings")

    @app.callback()
    def _main(
            ctx: typer.Context,
            endpoint: str | None = typer.Option(None, "--endpoint", help="Directory endpoint for every command."),
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
    ):
        setup_logging(verbose)
        ctx.obj = {"endpoint": endpoint}

    return app


app = _build_app()
