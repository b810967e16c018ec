"""Terminal UI prompts for the interactive resource browser.

All prompts are async (`ask_async`) so they run on the same event loop as
the browser's fetches. Every prompt returns None when the user cancels.
"""

from __future__ import annotations

from enum import Enum
from typing import Sequence

import questionary

from connops.cli.common.tui_style import QUESTIONARY_STYLE_INPUT, QUESTIONARY_STYLE_SELECT
from connops.core.columns import format_column_name, format_field_value, truncate_id
from connops.core.models import FieldDescriptor, Record, is_editable

_MAX_LABEL_WIDTH = 48


class Action(str, Enum):
    """Menu entries of the browse loop."""

    EDIT = "Edit a cell"
    PIN = "Pin fields"
    UNPIN = "Unpin fields"
    LIMIT = "Change page size"
    MODEL = "Switch model"
    REFRESH = "Refresh records"
    RELOAD_FIELDS = "Reload field metadata"
    QUIT = "Quit"


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def _record_choice_title(record: Record, columns: Sequence[str], *, id_width: int) -> str:
    """Format one record as `<id>  <first column value>` with an aligned value column."""
    short_id = truncate_id(record.id)
    preview = ""
    for column in columns:
        text = format_field_value(record.get(column))
        if text:
            preview = _truncate(text, _MAX_LABEL_WIDTH)
            break
    return f"{short_id.ljust(id_width)}  {preview}".rstrip()


def _field_choice_title(field: FieldDescriptor) -> str:
    """Format one field as `<label>  (<id>, <type>)`."""
    label = field.name or field.display_name or format_column_name(field.id)
    return f"{_truncate(label, _MAX_LABEL_WIDTH)}  ({field.id}, {field.type})"


def available_actions(
    *,
    has_records: bool,
    has_pins: bool,
    model_count: int,
    refreshing: bool,
) -> list[Action]:
    """Return the menu entries that make sense for the current table state."""
    actions: list[Action] = []
    if has_records and not refreshing:
        actions.append(Action.EDIT)
    actions.append(Action.PIN)
    if has_pins:
        actions.append(Action.UNPIN)
    actions.append(Action.LIMIT)
    if model_count > 1:
        actions.append(Action.MODEL)
    actions.extend([Action.REFRESH, Action.RELOAD_FIELDS, Action.QUIT])
    return actions


async def choose_action(actions: Sequence[Action]) -> Action | None:
    """Main menu."""
    answer = await questionary.select(
        "What next?",
        choices=[questionary.Choice(title=a.value, value=a) for a in actions],
        style=QUESTIONARY_STYLE_SELECT,
    ).ask_async()
    return answer


async def select_model(models: Sequence[str], current: str | None) -> str | None:
    """Pick a model; the current one is preselected."""
    choices = [
        questionary.Choice(title=f"{format_column_name(m)}  ({m})", value=m)
        for m in models
    ]
    return await questionary.select(
        "Select a model:",
        choices=choices,
        default=current if current in models else None,
        style=QUESTIONARY_STYLE_SELECT,
    ).ask_async()


async def select_fields_to_pin(
    custom: Sequence[FieldDescriptor],
    system: Sequence[FieldDescriptor],
) -> list[str]:
    """Checkbox of unpinned fields grouped into custom and system fields."""
    choices: list[questionary.Choice | questionary.Separator] = []
    if custom:
        choices.append(questionary.Separator("── Custom fields"))
        choices.extend(
            questionary.Choice(title=_field_choice_title(f), value=f.id) for f in custom
        )
    if system:
        choices.append(questionary.Separator("── System fields"))
        choices.extend(
            questionary.Choice(title=_field_choice_title(f), value=f.id) for f in system
        )
    if not choices:
        return []
    picked = await questionary.checkbox(
        "Fields to pin:",
        choices=choices,
        style=QUESTIONARY_STYLE_SELECT,
    ).ask_async()
    return list(picked or [])


async def select_fields_to_unpin(pinned: Sequence[str]) -> list[str]:
    """Checkbox of pinned fields."""
    if not pinned:
        return []
    picked = await questionary.checkbox(
        "Fields to unpin:",
        choices=[questionary.Choice(title=format_column_name(p), value=p) for p in pinned],
        style=QUESTIONARY_STYLE_SELECT,
    ).ask_async()
    return list(picked or [])


def _validate_limit(text: str) -> bool | str:
    try:
        value = int(text)
    except ValueError:
        return "Enter a whole number"
    return True if value >= 1 else "Minimum is 1"


async def ask_limit(current: int) -> int | None:
    """Ask for a new page size."""
    answer = await questionary.text(
        "Records per page:",
        default=str(current),
        validate=_validate_limit,
        style=QUESTIONARY_STYLE_INPUT,
    ).ask_async()
    return int(answer) if answer is not None else None


async def select_record(records: Sequence[Record], columns: Sequence[str]) -> Record | None:
    """Pick a row."""
    if not records:
        return None
    id_width = max((len(truncate_id(r.id)) for r in records), default=0)
    return await questionary.select(
        "Select a record:",
        choices=[
            questionary.Choice(
                title=_record_choice_title(r, columns, id_width=id_width), value=r
            )
            for r in records
        ],
        style=QUESTIONARY_STYLE_SELECT,
    ).ask_async()


def editable_columns(record: Record, columns: Sequence[str]) -> list[str]:
    """Columns of a record whose value may be edited inline."""
    return [c for c in columns if is_editable(record.get(c))]


async def select_column(
    record: Record, columns: Sequence[str], labels: dict[str, str]
) -> str | None:
    """Pick an editable cell of a record."""
    editable = editable_columns(record, columns)
    if not editable:
        return None
    choices = []
    for c in editable:
        current = format_field_value(record.get(c)) or "Empty"
        title = f"{labels.get(c, format_column_name(c))}: {_truncate(current, _MAX_LABEL_WIDTH)}"
        choices.append(questionary.Choice(title=title, value=c))
    return await questionary.select(
        "Select a field:",
        choices=choices,
        style=QUESTIONARY_STYLE_SELECT,
    ).ask_async()


async def ask_cell_text(label: str, current: str, *, numeric: bool) -> str | None:
    """Edit box for one cell; Ctrl-C cancels and keeps the old value."""
    hint = " (number)" if numeric else ""
    return await questionary.text(
        f"{label}{hint}:",
        default=current,
        instruction="Enter to save, Ctrl-C to cancel",
        style=QUESTIONARY_STYLE_INPUT,
    ).ask_async()
