"""Resource browser orchestration.

The browser owns the state of one resource table for one connector
connection: discovered models, the selected model, its field metadata,
pinned fields, fetched records and the per-cell editors.

Remote work runs as asyncio tasks ("effects"). Each effect takes a
generation token from its EffectClock when it starts; any change to the
effect's inputs bumps the clock, and a result whose token is no longer
current (or that arrives after close()) is dropped. A slow response to an old
query can therefore never overwrite what is currently displayed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine

from connops.core.columns import project_columns
from connops.core.discovery import discover_models
from connops.core.editor import CellEditor, CellMode, CommitOutcome
from connops.core.fields import FieldMetadataCache, get_fields
from connops.core.models import FieldDescriptor, Record
from connops.core.records import DEFAULT_LIMIT, clamp_limit, list_records, update_record_field

logger = logging.getLogger(__name__)

MODELS = "models"
FIELDS = "fields"
RECORDS = "records"


class EffectClock:
    """Generation counter for one kind of effect."""

    def __init__(self) -> None:
        self.generation = 0

    def next(self) -> int:
        """Invalidate every outstanding token and hand out a new one."""
        self.generation += 1
        return self.generation

    def is_current(self, token: int) -> bool:
        return token == self.generation


@dataclass
class BrowserState:
    """Everything the table renders from."""

    connected: bool = False
    models: list[str] = field(default_factory=list)
    selected_model: str | None = None
    model_fields: list[FieldDescriptor] = field(default_factory=list)
    pinned: list[str] = field(default_factory=list)
    records: list[Record] = field(default_factory=list)
    limit: int = DEFAULT_LIMIT
    error: str | None = None
    loading_models: bool = False
    loading: bool = False
    refreshing: bool = False


class ResourceBrowser:
    """Dynamic resource table for one connector connection."""

    def __init__(
        self,
        adapter: Any,
        connector_id: str,
        *,
        cache: FieldMetadataCache | None = None,
        limit: int = DEFAULT_LIMIT,
        on_change: Callable[[BrowserState], None] | None = None,
    ) -> None:
        self.adapter = adapter
        self.connector_id = connector_id
        self.cache = cache if cache is not None else FieldMetadataCache()
        self.state = BrowserState(limit=clamp_limit(limit))
        self._on_change = on_change
        self._clocks = {MODELS: EffectClock(), FIELDS: EffectClock(), RECORDS: EffectClock()}
        self._tasks: set[asyncio.Task] = set()
        self._editors: dict[tuple[str, str], CellEditor] = {}
        self._closed = False

    # -- derived state -----------------------------------------------------

    @property
    def columns(self) -> list[str]:
        return project_columns(self.state.records, self.state.pinned)

    @property
    def visible_records(self) -> list[Record]:
        return self.state.records[: self.state.limit]

    @property
    def closed(self) -> bool:
        return self._closed

    # -- plumbing ----------------------------------------------------------

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self.state)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        task.add_done_callback(self._report_failure)

    def _report_failure(self, task: asyncio.Task) -> None:
        if task.cancelled() or task.exception() is None:
            return
        logger.error("Background fetch failed", exc_info=task.exception())
        if not self._closed:
            self.state.error = "Unexpected error while loading data"
            self._notify()

    def _is_current(self, effect: str, token: int) -> bool:
        return not self._closed and self._clocks[effect].is_current(token)

    async def wait_idle(self) -> None:
        """
        Wait for every outstanding effect, including effects started by effects.

        Failures are not raised here; they are logged and surface as `state.error`.
        """
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def close(self) -> None:
        """Tear down: every in-flight result is abandoned from now on."""
        self._closed = True
        for clock in self._clocks.values():
            clock.next()

    # -- connection --------------------------------------------------------

    def set_connected(self, connected: bool) -> None:
        """React to the connection host; (re)discovers models when authorized."""
        if self._closed:
            return
        self.state.connected = connected
        if connected:
            self._load_models()
            return

        for clock in self._clocks.values():
            clock.next()
        self._editors.clear()
        self.state.models = []
        self.state.selected_model = None
        self.state.model_fields = []
        self.state.pinned = []
        self.state.records = []
        self.state.error = None
        self.state.loading_models = False
        self.state.loading = False
        self.state.refreshing = False
        self._notify()

    def _load_models(self) -> None:
        token = self._clocks[MODELS].next()
        self.state.loading_models = True
        self.state.error = None
        self._spawn(self._run_models(token))

    async def _run_models(self, token: int) -> None:
        try:
            models = await discover_models(self.adapter)
        finally:
            if self._is_current(MODELS, token):
                self.state.loading_models = False
        if not self._is_current(MODELS, token):
            logger.debug("Dropping stale model list for %s", self.connector_id)
            return
        self.state.models = models
        if models:
            self.select_model(models[0])
        else:
            self._clear_model()
            self._notify()

    # -- model selection ---------------------------------------------------

    def _clear_model(self) -> None:
        self._clocks[FIELDS].next()
        self._clocks[RECORDS].next()
        self._editors.clear()
        self.state.selected_model = None
        self.state.pinned = []
        self.state.records = []
        self.state.model_fields = []
        self.state.error = None
        self.state.loading = False
        self.state.refreshing = False

    def select_model(self, model_id: str) -> None:
        """
        Switch the table to another model.

        Pins, records (hence columns), field metadata and the error are
        cleared before the new fetches start.
        """
        if model_id not in self.state.models:
            raise ValueError(f"Unknown model: {model_id}")
        self._clear_model()
        self.state.selected_model = model_id
        self._notify()
        self._load_fields()
        self._load_records()

    # -- fields ------------------------------------------------------------

    def _load_fields(self, *, use_cache: bool = True) -> None:
        model = self.state.selected_model
        if not self.state.connected or not model:
            return
        token = self._clocks[FIELDS].next()
        self._spawn(self._run_fields(token, model, use_cache))

    async def _run_fields(self, token: int, model: str, use_cache: bool) -> None:
        fields = await get_fields(
            self.adapter, self.cache, self.connector_id, model, use_cache=use_cache
        )
        if not self._is_current(FIELDS, token):
            logger.debug("Dropping stale fields for %s", model)
            return
        self.state.model_fields = fields
        self._notify()

    def reload_fields(self) -> None:
        """Bypass the cache and refetch the field metadata of the selected model."""
        self._load_fields(use_cache=False)

    # -- pins and page size ------------------------------------------------

    def pin_field(self, field_id: str) -> None:
        if field_id in self.state.pinned:
            return
        self.state.pinned = [*self.state.pinned, field_id]
        self._load_records()

    def unpin_field(self, field_id: str) -> None:
        if field_id not in self.state.pinned:
            return
        self.state.pinned = [f for f in self.state.pinned if f != field_id]
        self._load_records()

    def toggle_field(self, field_id: str) -> None:
        if field_id in self.state.pinned:
            self.unpin_field(field_id)
        else:
            self.pin_field(field_id)

    def set_limit(self, limit: Any) -> None:
        value = clamp_limit(limit)
        if value == self.state.limit:
            return
        self.state.limit = value
        self._load_records()

    def increment_limit(self) -> None:
        self.set_limit(self.state.limit + 1)

    def decrement_limit(self) -> None:
        self.set_limit(self.state.limit - 1)

    # -- records -----------------------------------------------------------

    def refresh(self) -> None:
        """Refetch the records of the selected model, keeping the current rows on screen."""
        self._load_records()

    def _load_records(self) -> None:
        model = self.state.selected_model
        if not self.state.connected or not model:
            return
        token = self._clocks[RECORDS].next()
        if self.state.records:
            self.state.refreshing = True
        else:
            self.state.loading = True
        self.state.error = None
        self._notify()
        self._spawn(
            self._run_records(token, model, self.state.limit, list(self.state.pinned))
        )

    async def _run_records(
        self, token: int, model: str, limit: int, pinned: list[str]
    ) -> None:
        try:
            result = await list_records(self.adapter, model, limit, pinned or None)
        finally:
            if self._is_current(RECORDS, token):
                self.state.loading = False
                self.state.refreshing = False
        if not self._is_current(RECORDS, token):
            logger.debug("Dropping stale records for %s", model)
            return
        if result.error is not None:
            self.state.error = result.error
        else:
            self.state.records = result.records
            self._prune_editors()
        self._notify()

    # -- editing -----------------------------------------------------------

    def _prune_editors(self) -> None:
        """Keep only editors that are mid-edit or still show an error."""
        self._editors = {
            key: editor
            for key, editor in self._editors.items()
            if editor.mode != CellMode.VIEWING or editor.error is not None
        }

    def _find_record(self, record_id: str) -> Record:
        for record in self.state.records:
            if record.id == record_id:
                return record
        raise KeyError(record_id)

    def cell(self, record_id: str, field_id: str) -> CellEditor:
        """Return the editor of a cell, creating it from the current record value."""
        key = (record_id, field_id)
        editor = self._editors.get(key)
        if editor is not None and (
            editor.mode != CellMode.VIEWING or editor.error is not None
        ):
            return editor

        record = self._find_record(record_id)
        model = self.state.selected_model or ""

        async def _submit(rid: str, fid: str, value: Any) -> None:
            await update_record_field(self.adapter, model, rid, fid, value)

        editor = CellEditor(
            record_id,
            field_id,
            record.get(field_id),
            submit=_submit,
            on_updated=self.refresh,
        )
        self._editors[key] = editor
        return editor

    def cell_errors(self) -> dict[tuple[str, str], str]:
        """Inline error messages keyed by (record id, field)."""
        return {
            key: editor.error
            for key, editor in self._editors.items()
            if editor.error is not None
        }

    async def edit_cell(self, record_id: str, field_id: str, text: str) -> CommitOutcome:
        """Begin, type and commit in one step (used by non-interactive frontends)."""
        editor = self.cell(record_id, field_id)
        if not editor.begin(disabled=self.state.refreshing):
            return CommitOutcome.IGNORED
        editor.set_text(text)
        return await editor.commit()
