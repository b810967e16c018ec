from __future__ import annotations

import asyncio

import typer

from connops.cli.common.context import ConnectorAppContext, build_context, open_adapter
from connops.cli.common.exits import exit_from_exc
from connops.cli.common.options import ConnectorOpt, OwnerOpt, TokenOpt
from connops.cli.common.output import out
from connops.core.auth import AuthError, is_available_connector, require_secret_key
from connops.core.connection import (
    SessionError,
    check_connection,
    create_session,
    default_owner_id,
    unavailable_notice,
)
from connops.core.connectors import connector_name

session_app = typer.Typer(
    help="Create sessions and check connection status.",
    no_args_is_help=False,
    invoke_without_command=True,
)


@session_app.callback()
def _init(ctx: typer.Context, connector: str = ConnectorOpt):
    """Initialize the connector context."""
    ctx.obj = build_context(connector)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


def warn_if_demo(appctx: ConnectorAppContext) -> None:
    """Tell the user when a connector runs on demo keys."""
    if not is_available_connector(appctx.settings, appctx.connector_id):
        out.warn(unavailable_notice(appctx.connector_id))
    elif appctx.keys.demo:
        out.warn("CONNOPS_PUBLIC_KEY is not set; falling back to demo keys.")


@session_app.command("create")
def session_create(ctx: typer.Context, owner: str | None = OwnerOpt):
    """Create a session token for an owner/connector pair."""
    appctx: ConnectorAppContext = ctx.obj
    owner_id = owner or default_owner_id()
    warn_if_demo(appctx)

    try:
        require_secret_key(appctx.keys)
    except AuthError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    async def _create() -> str:
        async with open_adapter(appctx) as adapter:
            return await create_session(adapter, owner_id, appctx.connector_id)

    try:
        with out.status("Creating session..."):
            token = asyncio.run(_create())
    except SessionError as exc:
        exit_from_exc(exc, message=str(exc), code=1)

    out.success("Session created.")
    out.kv(
        {
            "Connector": connector_name(appctx.connector_id),
            "Owner": owner_id,
            "Session token": token,
        }
    )


@session_app.command("status")
def session_status(ctx: typer.Context, token: str = TokenOpt):
    """Show whether the session's connection is authorized."""
    appctx: ConnectorAppContext = ctx.obj

    async def _check():
        async with open_adapter(appctx, session_token=token) as adapter:
            return await check_connection(adapter)

    with out.status("Retrieving connection..."):
        state = asyncio.run(_check())

    out.kv(
        {
            "Connector": connector_name(appctx.connector_id),
            "Status": state.status.value,
        }
    )
    if state.error:
        out.error(state.error)
        raise typer.Exit(1)
    if not state.connected:
        out.warn("Not authorized yet. Complete the connect flow for this session.")
        return
    out.success("Connection is authorized.")
