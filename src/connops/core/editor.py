"""Inline editing of a single table cell.

Each cell runs its own small state machine:

    VIEWING -> EDITING -> SUBMITTING -> VIEWING
                                     -> EDITING_WITH_ERROR

Cells are independent; a failure stays on the cell that produced it.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Awaitable, Callable

from connops.core.adapters.morph import ConnectorApiError
from connops.core.columns import edit_text
from connops.core.models import ValueKind, is_editable, value_kind

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_ERROR = "Failed to update field"
NOT_A_NUMBER_ERROR = "Value must be a number"

Submit = Callable[[str, str, Any], Awaitable[None]]


class CellMode(str, Enum):
    """Editing state of one cell."""

    VIEWING = "VIEWING"
    EDITING = "EDITING"
    SUBMITTING = "SUBMITTING"
    EDITING_WITH_ERROR = "EDITING_WITH_ERROR"


class CommitOutcome(str, Enum):
    """What a commit attempt did."""

    UNCHANGED = "UNCHANGED"
    UPDATED = "UPDATED"
    FAILED = "FAILED"
    IGNORED = "IGNORED"


def coerce_number(text: str) -> int | float | None:
    """Parse edit text for a numeric field. Empty text clears the value."""
    stripped = text.strip()
    if not stripped:
        return None
    try:
        return int(stripped)
    except ValueError:
        pass
    number = float(stripped)
    if not math.isfinite(number):
        raise ValueError(f"not a finite number: {text!r}")
    return number


class CellEditor:
    """State machine for editing one (record, field) cell."""

    def __init__(
        self,
        record_id: str,
        field: str,
        value: Any,
        submit: Submit,
        on_updated: Callable[[], Any] | None = None,
    ) -> None:
        self.record_id = record_id
        self.field = field
        self.value = value
        self._submit = submit
        self._on_updated = on_updated
        self.text = edit_text(value) if is_editable(value) else ""
        self.mode = CellMode.VIEWING
        self.error: str | None = None

    @property
    def editable(self) -> bool:
        return is_editable(self.value)

    @property
    def original_text(self) -> str:
        return edit_text(self.value)

    @property
    def busy(self) -> bool:
        return self.mode == CellMode.SUBMITTING

    def begin(self, *, disabled: bool = False) -> bool:
        """Enter editing. Refused for read-only values, while disabled or submitting."""
        if not self.editable or disabled or self.busy:
            return False
        if self.mode == CellMode.VIEWING:
            self.mode = CellMode.EDITING
        return True

    def set_text(self, text: str) -> None:
        if self.mode in (CellMode.EDITING, CellMode.EDITING_WITH_ERROR):
            self.text = text

    def cancel(self) -> None:
        """Drop the pending edit and go back to viewing."""
        if self.busy:
            return
        self.text = self.original_text
        self.error = None
        self.mode = CellMode.VIEWING

    def _fail(self, message: str) -> CommitOutcome:
        self.error = message
        self.text = self.original_text
        self.mode = CellMode.EDITING_WITH_ERROR
        return CommitOutcome.FAILED

    async def commit(self) -> CommitOutcome:
        """
        Submit the edit.

        Unchanged text returns to VIEWING without a remote call. Numeric
        fields are submitted as numbers. On success the refresh callback
        runs; on failure the text reverts and the error stays on the cell.
        """
        if self.mode not in (CellMode.EDITING, CellMode.EDITING_WITH_ERROR):
            return CommitOutcome.IGNORED

        if self.text == self.original_text:
            self.mode = CellMode.VIEWING
            self.error = None
            return CommitOutcome.UNCHANGED

        new_value: Any = self.text
        if value_kind(self.value) == ValueKind.NUMBER:
            try:
                new_value = coerce_number(self.text)
            except ValueError:
                return self._fail(NOT_A_NUMBER_ERROR)

        self.mode = CellMode.SUBMITTING
        self.error = None
        try:
            await self._submit(self.record_id, self.field, new_value)
        except ConnectorApiError as exc:
            logger.error(
                "Error updating %s.%s: %s", self.record_id, self.field, exc.message
            )
            return self._fail(exc.message or DEFAULT_UPDATE_ERROR)

        self.mode = CellMode.VIEWING
        if self._on_updated is not None:
            self._on_updated()
        return CommitOutcome.UPDATED
