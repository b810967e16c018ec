"""Common CLI options for the CLI."""

import typer

from connops.core.connectors import DEFAULT_CONNECTOR_ID
from connops.core.records import DEFAULT_LIMIT

ConnectorOpt = typer.Option(
    DEFAULT_CONNECTOR_ID,
    "--connector",
    "-c",
    help="Connector id (see `connops connectors`)",
)

TokenOpt = typer.Option(
    ...,
    "--token",
    "-t",
    envvar="CONNOPS_SESSION_TOKEN",
    help="Session token from `connops session create`",
)

OptionalTokenOpt = typer.Option(
    None,
    "--token",
    "-t",
    envvar="CONNOPS_SESSION_TOKEN",
    help="Reuse an existing session token instead of creating one",
)

OwnerOpt = typer.Option(
    None,
    "--owner",
    "-o",
    help="Owner id the connection belongs to (default: temp_<timestamp>)",
)

LimitOpt = typer.Option(
    DEFAULT_LIMIT,
    "--limit",
    "-n",
    help="Number of records to fetch (minimum 1)",
)

FieldOpt = typer.Option(
    [],
    "--field",
    "-f",
    help="Field to always show (pin). This is reusable.",
    show_default=False,
)

NoCacheOpt = typer.Option(
    False,
    "--no-cache",
    help="Bypass the field metadata cache",
)

NumberOpt = typer.Option(
    False,
    "--number",
    help="Send the value as a number instead of text",
)

ConfirmOpt = typer.Option(
    True,
    "--confirm/--no-confirm",
    help="Ask for confirmation before writing to the connector",
)

VerboseOpt = typer.Option(
    False,
    "--verbose",
    "-v",
    help="Log API calls and cache activity",
)
