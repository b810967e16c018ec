"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

import questionary
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from connops.cli.common.tui_style import QUESTIONARY_STYLE_CONFIRM
from connops.core.columns import format_column_name, format_field_value, truncate_id
from connops.core.fields import field_label
from connops.core.models import FieldDescriptor, Record, is_editable

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
        "pin": "bold magenta",
    }
)

console = Console(theme=_THEME)


def render_cell(value: Any, error: str | None = None) -> str:
    """Rich markup for one table cell (empty editable cells read `Empty`)."""
    if value is None:
        text = "[meta][i]Empty[/i][/meta]"
    else:
        text = escape(format_field_value(value))
        if not is_editable(value):
            text = f"[meta]{text}[/meta]"
    if error:
        text = f"{text}\n[err]{escape(error)}[/err]"
    return text


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables."""

    def _q_try(self, fn, *args, **kwargs):
        """Call questionary prompts and drop unsupported kwargs on older versions."""
        try:
            return fn(*args, **kwargs)
        except TypeError:
            for k in ("pointer", "checked_icon", "unchecked_icon", "auto_enter"):
                kwargs.pop(k, None)
            return fn(*args, **kwargs)

    def _q(self, message: str) -> str:
        """Prefix Questionary prompts to be CONN-OPS consistent."""
        return f"[CONN-OPS] {message}"

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{title}[/]")

    def print(self, msg: str) -> None:
        """Print a raw Rich-formatted message to the console."""
        console.print(msg)

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            console.print(f"[meta]{k}[/]: {v}")

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """
        Ask the user for confirmation using a standardized Questionary prompt.

        Args:
            message: Confirmation question shown to the user.
            default: Default answer if the user just presses enter.

        Returns:
            True if the user confirms, False otherwise.
        """
        console.print("[meta]Use y/n then Enter[/]")

        prompt = self._q_try(
            questionary.confirm,
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_CONFIRM,
            qmark="✦",
            auto_enter=False,
            pointer="❯",
        )
        return bool(prompt.ask())

    def connectors_table(
        self, connectors: Iterable[Any], available: Sequence[str], title: str = "Connectors"
    ) -> None:
        """Expects objects with .id and .label (like connops.core.connectors.Connector)."""
        t = Table(title=title, show_lines=False)
        t.add_column("Connector", style="ok", no_wrap=True)
        t.add_column("Name")
        t.add_column("Mode", style="meta")

        for c in connectors:
            mode = "live" if c.id in available else "demo"
            t.add_row(c.id, c.label, mode)

        console.print(t)

    def models_table(self, models: Iterable[str], title: str = "Models") -> None:
        """Render model ids with their display names."""
        t = Table(title=title, show_lines=False)
        t.add_column("Model", style="ok", no_wrap=True)
        t.add_column("Name")

        for m in models:
            t.add_row(m, format_column_name(m))

        console.print(t)

    def fields_table(
        self,
        fields: Iterable[FieldDescriptor],
        pinned: Sequence[str] = (),
        title: str = "Fields",
    ) -> None:
        """Render field descriptors; custom fields are listed before system fields."""
        t = Table(title=title, show_lines=False)
        t.add_column("Field", style="ok", no_wrap=True)
        t.add_column("Label")
        t.add_column("Type", style="meta")
        t.add_column("Kind", style="meta")
        t.add_column("Required", style="meta")
        t.add_column("Pinned", style="pin")

        ordered = sorted(fields, key=lambda f: (not f.is_custom,))
        for f in ordered:
            required = "" if f.required is None else ("yes" if f.required else "no")
            t.add_row(
                f.id,
                escape(f.name or f.display_name or format_column_name(f.id)),
                f.type,
                "custom" if f.is_custom else "system",
                required,
                "●" if f.id in pinned else "",
            )

        console.print(t)

    def records_table(
        self,
        records: Sequence[Record],
        columns: Sequence[str],
        *,
        model: str,
        fields: Sequence[FieldDescriptor] = (),
        pinned: Sequence[str] = (),
        cell_errors: Mapping[tuple[str, str], str] | None = None,
        title: str | None = None,
    ) -> None:
        """
        Render the resource table.

        The first column is the (truncated) record id; pinned columns are
        marked. With no records a single `No <Model> found` row is shown.
        """
        errors = cell_errors or {}
        t = Table(title=title or format_column_name(model), show_lines=False)
        t.add_column("ID", style="ok", no_wrap=True, max_width=24)
        for column in columns:
            label = escape(field_label(fields, column))
            header = f"[pin]{label} ●[/]" if column in pinned else label
            t.add_column(header, overflow="ellipsis", max_width=40)

        if not records:
            t.add_row(
                f"[meta]No {format_column_name(model)} found[/]",
                *([""] * len(columns)),
            )
        for r in records:
            t.add_row(
                escape(truncate_id(r.id)),
                *(render_cell(r.get(c), errors.get((r.id, c))) for c in columns),
            )

        console.print(t)


out = Out()
