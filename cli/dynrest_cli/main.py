from __future__ import annotations

import typer

from .commands import auth_cmd, call_cmd, config_cmd, entities_cmd
from .logging_ import setup_logging


def _build_app() -> typer.Typer:
    app = typer.Typer(
        name="dynrest",
        help="dynrest CLI",
        no_args_is_help=True,
    )

    app.add_typer(config_cmd.app, name="config")
    app.add_typer(auth_cmd.app, name="auth")
    app.add_typer(entities_cmd.app, name="entities")
    app.command("whoami")(auth_cmd.whoami_impl)
    app.command("call")(call_cmd.call)
    app.command("integrations")(call_cmd.integration)

    @app.callback()
    def _main(
            verbose: bool = typer.Option(False, "-v", "--verbose", help="Verbose logs."),
    ):
        setup_logging(verbose)

    return app


app = _build_app()
