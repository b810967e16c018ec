"""Interactive resource browser command."""

from __future__ import annotations

import asyncio

from rich.markup import escape

from connops.cli import tui
from connops.cli.commands.session import warn_if_demo
from connops.cli.common.context import ConnectorAppContext, build_context, open_adapter
from connops.cli.common.exits import exit_from_exc, ok_exit
from connops.cli.common.options import ConnectorOpt, LimitOpt, OptionalTokenOpt, OwnerOpt
from connops.cli.common.output import out
from connops.core.auth import AuthError, require_secret_key
from connops.core.browser import ResourceBrowser
from connops.core.columns import format_column_name
from connops.core.connection import (
    SessionError,
    check_connection,
    create_session,
    default_owner_id,
)
from connops.core.connectors import connector_name
from connops.core.editor import CommitOutcome
from connops.core.fields import (
    FieldMetadataCache,
    field_description,
    field_label,
    split_unpinned_fields,
)
from connops.core.models import ValueKind, value_kind


def render(browser: ResourceBrowser) -> None:
    """Print the current table (error above it, refresh marker, page size)."""
    state = browser.state
    model = state.selected_model or ""
    out.header(f"{connector_name(browser.connector_id)} › {format_column_name(model)}")
    meta = f"Page size: {state.limit} | Pinned: {len(state.pinned)}"
    if state.refreshing:
        meta += " | refreshing..."
    out.info(meta)
    if state.error:
        out.error(state.error)
    out.records_table(
        browser.visible_records,
        browser.columns,
        model=model,
        fields=state.model_fields,
        pinned=state.pinned,
        cell_errors=browser.cell_errors(),
    )


async def _edit(browser: ResourceBrowser) -> None:
    record = await tui.select_record(browser.visible_records, browser.columns)
    if record is None:
        return
    if not tui.editable_columns(record, browser.columns):
        out.warn("This record has no editable fields.")
        return
    labels = {c: field_label(browser.state.model_fields, c) for c in browser.columns}
    column = await tui.select_column(record, browser.columns, labels)
    if column is None:
        return

    editor = browser.cell(record.id, column)
    if not editor.begin(disabled=browser.state.refreshing):
        out.warn("This cell cannot be edited right now.")
        return

    hint = field_description(browser.state.model_fields, column)
    if hint:
        out.print(f"[meta]{escape(hint)}[/]")
    text = await tui.ask_cell_text(
        labels.get(column, column),
        editor.text,
        numeric=value_kind(editor.value) == ValueKind.NUMBER,
    )
    if text is None:
        editor.cancel()
        return

    editor.set_text(text)
    with out.status("Saving..."):
        outcome = await editor.commit()

    if outcome == CommitOutcome.UNCHANGED:
        out.info("No change.")
    elif outcome == CommitOutcome.UPDATED:
        out.success(f"Updated {labels.get(column, column)}.")
    elif outcome == CommitOutcome.FAILED:
        out.error(editor.error or "Failed to update field")


async def _loop(browser: ResourceBrowser) -> None:
    while True:
        with out.status("Loading..."):
            await browser.wait_idle()

        state = browser.state
        if not state.models:
            out.warn("No list operations available.")
            return
        render(browser)

        action = await tui.choose_action(
            tui.available_actions(
                has_records=bool(state.records),
                has_pins=bool(state.pinned),
                model_count=len(state.models),
                refreshing=state.refreshing,
            )
        )
        if action is None or action == tui.Action.QUIT:
            return

        if action == tui.Action.EDIT:
            await _edit(browser)
        elif action == tui.Action.PIN:
            custom, system = split_unpinned_fields(state.model_fields, state.pinned)
            if not custom and not system:
                out.warn("No field metadata available to pin from.")
            for field_id in await tui.select_fields_to_pin(custom, system):
                browser.pin_field(field_id)
        elif action == tui.Action.UNPIN:
            for field_id in await tui.select_fields_to_unpin(state.pinned):
                browser.unpin_field(field_id)
        elif action == tui.Action.LIMIT:
            limit = await tui.ask_limit(state.limit)
            if limit is not None:
                browser.set_limit(limit)
        elif action == tui.Action.MODEL:
            model = await tui.select_model(state.models, state.selected_model)
            if model is not None and model != state.selected_model:
                browser.select_model(model)
        elif action == tui.Action.REFRESH:
            browser.refresh()
        elif action == tui.Action.RELOAD_FIELDS:
            browser.reload_fields()


async def run_browser(
    appctx: ConnectorAppContext,
    owner_id: str,
    session_token: str | None,
    limit: int,
) -> None:
    """Establish the connection, then hand over to the interactive loop."""
    async with open_adapter(appctx) as base:
        if session_token is None:
            with out.status("Creating session..."):
                session_token = await create_session(base, owner_id, appctx.connector_id)
            out.kv({"Owner": owner_id, "Session token": session_token})

        adapter = base.with_session(session_token)
        with out.status("Retrieving connection..."):
            connection = await check_connection(adapter)
        if not connection.connected:
            out.warn("Connect to load resources.")
            out.info(
                "Authorize this session in the connect flow, then rerun with "
                f"--token {session_token}"
            )
            return

        browser = ResourceBrowser(
            adapter,
            appctx.connector_id,
            cache=FieldMetadataCache(ttl_seconds=appctx.settings.field_cache_ttl),
            limit=limit,
        )
        browser.set_connected(True)
        try:
            await _loop(browser)
        finally:
            browser.close()


def browse(
    connector: str = ConnectorOpt,
    owner: str | None = OwnerOpt,
    token: str | None = OptionalTokenOpt,
    limit: int = LimitOpt,
):
    """Browse and edit a connector's records interactively."""
    appctx = build_context(connector)
    warn_if_demo(appctx)

    if token is None:
        try:
            require_secret_key(appctx.keys)
        except AuthError as exc:
            exit_from_exc(exc, message=str(exc), code=1)

    try:
        asyncio.run(run_browser(appctx, owner or default_owner_id(), token, limit))
    except SessionError as exc:
        exit_from_exc(exc, message=str(exc), code=1)
    except KeyboardInterrupt:
        ok_exit("Bye.")
