"""CLI application for the connector resource browser."""

import typer

from connops.cli.commands.browse import browse
from connops.cli.commands.connectors import connectors_list
from connops.cli.commands.resources import models_app, records_app
from connops.cli.commands.session import session_app
from connops.cli.common.logs import configure_logging
from connops.cli.common.options import VerboseOpt

app = typer.Typer(
    help="connops - browse and edit connector records",
    no_args_is_help=True,
)


@app.callback()
def _main(verbose: bool = VerboseOpt):
    """Configure logging before any command runs."""
    configure_logging(verbose)


app.command("connectors")(connectors_list)
app.command("browse")(browse)
app.add_typer(session_app, name="session")
app.add_typer(models_app, name="models")
app.add_typer(records_app, name="records")


if __name__ == "__main__":
    app()
