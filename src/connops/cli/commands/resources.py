from __future__ import annotations

import asyncio

import typer

from connops.cli.common.context import ConnectorAppContext, build_context, open_adapter
from connops.cli.common.exits import exit_from_exc
from connops.cli.common.options import (
    ConfirmOpt,
    ConnectorOpt,
    FieldOpt,
    LimitOpt,
    NoCacheOpt,
    NumberOpt,
    TokenOpt,
)
from connops.cli.common.output import out
from connops.core.adapters.morph import ConnectorApiError
from connops.core.columns import format_column_name, project_columns
from connops.core.discovery import discover_models
from connops.core.editor import coerce_number
from connops.core.fields import FieldMetadataCache, get_fields, split_unpinned_fields
from connops.core.records import clamp_limit, list_records, update_record_field

models_app = typer.Typer(
    help="Discover models and their fields.",
    no_args_is_help=False,
    invoke_without_command=True,
)

records_app = typer.Typer(
    help="List and update records.",
    no_args_is_help=False,
    invoke_without_command=True,
)


def _init_context(ctx: typer.Context, connector: str) -> None:
    ctx.obj = build_context(connector)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(0)


@models_app.callback()
def _init_models(ctx: typer.Context, connector: str = ConnectorOpt):
    """Initialize the connector context."""
    _init_context(ctx, connector)


@records_app.callback()
def _init_records(ctx: typer.Context, connector: str = ConnectorOpt):
    """Initialize the connector context."""
    _init_context(ctx, connector)


@models_app.command("list")
def models_list(ctx: typer.Context, token: str = TokenOpt):
    """List models whose connector supports a list operation."""
    appctx: ConnectorAppContext = ctx.obj

    async def _discover() -> list[str]:
        async with open_adapter(appctx, session_token=token) as adapter:
            return await discover_models(adapter)

    with out.status("Loading models..."):
        models = asyncio.run(_discover())

    if not models:
        out.warn("No list operations available.")
        raise typer.Exit(0)

    out.header("Models")
    out.info(f"Connector: {appctx.connector_id} | Models: {len(models)}")
    out.models_table(models)


@models_app.command("fields")
def models_fields(
    ctx: typer.Context,
    model: str = typer.Argument(..., help="Model id, e.g. genericContact"),
    token: str = TokenOpt,
    no_cache: bool = NoCacheOpt,
):
    """List the fields of a model (custom fields first)."""
    appctx: ConnectorAppContext = ctx.obj
    cache = FieldMetadataCache(ttl_seconds=appctx.settings.field_cache_ttl)

    async def _fields():
        async with open_adapter(appctx, session_token=token) as adapter:
            return await get_fields(
                adapter, cache, appctx.connector_id, model, use_cache=not no_cache
            )

    with out.status(f"Loading fields of {format_column_name(model)}..."):
        fields = asyncio.run(_fields())

    if not fields:
        out.warn(f"No field metadata available for {model}.")
        raise typer.Exit(0)

    custom, system = split_unpinned_fields(fields, pinned=())
    out.header("Fields")
    out.info(f"Model: {model} | Custom: {len(custom)} | System: {len(system)}")
    out.fields_table(fields, title=f"{format_column_name(model)} fields")


@records_app.command("list")
def records_list(
    ctx: typer.Context,
    model: str = typer.Argument(..., help="Model id, e.g. genericContact"),
    token: str = TokenOpt,
    limit: int = LimitOpt,
    field: list[str] = FieldOpt,
):
    """List records of a model as a table."""
    appctx: ConnectorAppContext = ctx.obj
    page_size = clamp_limit(limit)
    pinned = list(dict.fromkeys(field))
    cache = FieldMetadataCache(ttl_seconds=appctx.settings.field_cache_ttl)

    async def _list():
        async with open_adapter(appctx, session_token=token) as adapter:
            return await asyncio.gather(
                list_records(adapter, model, page_size, pinned or None),
                get_fields(adapter, cache, appctx.connector_id, model),
            )

    with out.status(f"Loading {format_column_name(model)}..."):
        result, fields = asyncio.run(_list())

    if result.error:
        out.error(result.error)
        raise typer.Exit(1)

    records = result.records[:page_size]
    out.records_table(
        records,
        project_columns(result.records, pinned),
        model=model,
        fields=fields,
        pinned=pinned,
    )


@records_app.command("update")
def records_update(
    ctx: typer.Context,
    model: str = typer.Argument(..., help="Model id"),
    record_id: str = typer.Argument(..., help="Record id"),
    field: str = typer.Argument(..., help="Field id"),
    value: str = typer.Argument(..., help="New value"),
    token: str = TokenOpt,
    number: bool = NumberOpt,
    confirm: bool = ConfirmOpt,
):
    """Update one field of one record."""
    appctx: ConnectorAppContext = ctx.obj

    new_value: object = value
    if number:
        try:
            new_value = coerce_number(value)
        except ValueError as exc:
            exit_from_exc(exc, message=f"Not a number: {value!r}", code=2)

    if confirm and not out.confirm(
        f"Set {model}/{record_id}.{field} to {new_value!r}?", default=False
    ):
        out.warn("Aborted.")
        raise typer.Exit(0)

    async def _update() -> None:
        async with open_adapter(appctx, session_token=token) as adapter:
            await update_record_field(adapter, model, record_id, field, new_value)

    try:
        with out.status("Updating record..."):
            asyncio.run(_update())
    except ConnectorApiError as exc:
        exit_from_exc(exc, message=exc.message or "Failed to update field", code=1)

    out.success(f"Updated {field} on {record_id}.")
