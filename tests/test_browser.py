import asyncio

import httpx
import pytest

from connops.core.adapters.morph import ConnectorApiError, MorphAdapter
from connops.core.browser import EffectClock, ResourceBrowser
from connops.core.editor import CommitOutcome
from connops.core.fields import FieldMetadataCache
from connops.core.models import FieldDescriptor, KeyPair, Record

CONTACTS = [
    Record(id="r1", fields={"name": "Ada", "age": 36}),
    Record(id="r2", fields={"name": "Grace", "age": None}),
]
DEALS = [Record(id="d1", fields={"amount": 100, "stage": "won"})]


class _Adapter:
    def __init__(self):
        self.operations = ["genericContact::list", "crmDeal::list", "crmDeal::update"]
        self.records = {"genericContact": CONTACTS, "crmDeal": DEALS}
        self.fields = {
            "genericContact": [FieldDescriptor(id="name"), FieldDescriptor(id="phone")],
            "crmDeal": [FieldDescriptor(id="amount")],
        }
        self.gates: dict[str, asyncio.Event] = {}
        self.field_gates: dict[str, asyncio.Event] = {}
        self.operation_gates: list[asyncio.Event] = []
        self.operation_calls = 0
        self.record_calls: list[tuple] = []
        self.field_calls: list[str] = []
        self.updates: list[tuple] = []
        self.fail_records: str | None = None
        self.fail_update: str | None = None

    async def list_operations(self):
        operations = list(self.operations)
        self.operation_calls += 1
        if self.operation_gates:
            await self.operation_gates.pop(0).wait()
        return operations

    async def list_fields(self, model_id):
        self.field_calls.append(model_id)
        gate = self.field_gates.get(model_id)
        if gate is not None:
            await gate.wait()
        return list(self.fields.get(model_id, []))

    async def list_records(self, model_id, *, limit, fields=None):
        self.record_calls.append((model_id, limit, fields))
        gate = self.gates.get(model_id)
        if gate is not None:
            await gate.wait()
        if self.fail_records:
            raise ConnectorApiError(self.fail_records)
        return list(self.records[model_id])[:limit]

    async def update_record_field(self, model_id, record_id, field, value):
        self.updates.append((model_id, record_id, field, value))
        if self.fail_update:
            raise ConnectorApiError(self.fail_update)


async def _until(predicate):
    for _ in range(200):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


async def _connected_browser(adapter=None, **kwargs):
    adapter = adapter or _Adapter()
    browser = ResourceBrowser(adapter, "hubspot", **kwargs)
    browser.set_connected(True)
    await browser.wait_idle()
    return browser, adapter


def test_effect_clock_invalidates_previous_tokens():
    clock = EffectClock()
    first = clock.next()
    second = clock.next()

    assert clock.is_current(second)
    assert not clock.is_current(first)


@pytest.mark.asyncio
async def test_connect_discovers_models_and_loads_first_model():
    browser, adapter = await _connected_browser()

    assert browser.state.models == ["genericContact", "crmDeal"]
    assert browser.state.selected_model == "genericContact"
    assert [r.id for r in browser.state.records] == ["r1", "r2"]
    assert [f.id for f in browser.state.model_fields] == ["name", "phone"]
    assert browser.columns == ["age", "name"]
    assert browser.state.loading is False


@pytest.mark.asyncio
async def test_no_list_operations_means_no_models():
    adapter = _Adapter()
    adapter.operations = ["genericContact::retrieve"]

    browser, _ = await _connected_browser(adapter)

    assert browser.state.models == []
    assert browser.state.selected_model is None
    assert adapter.record_calls == []


@pytest.mark.asyncio
async def test_late_results_for_previous_model_are_discarded():
    adapter = _Adapter()
    adapter.gates["genericContact"] = asyncio.Event()
    browser = ResourceBrowser(adapter, "hubspot")

    browser.set_connected(True)
    await _until(lambda: adapter.record_calls)
    browser.select_model("crmDeal")
    await _until(lambda: browser.state.records)

    adapter.gates["genericContact"].set()
    await browser.wait_idle()

    assert browser.state.selected_model == "crmDeal"
    assert [r.id for r in browser.state.records] == ["d1"]
    assert browser.columns == ["amount", "stage"]


@pytest.mark.asyncio
async def test_select_model_resets_pins_and_rows_before_fetching():
    browser, adapter = await _connected_browser()
    browser.pin_field("phone")
    await browser.wait_idle()
    adapter.gates["crmDeal"] = asyncio.Event()

    browser.select_model("crmDeal")

    assert browser.state.pinned == []
    assert browser.state.records == []
    assert browser.columns == []
    assert browser.state.model_fields == []
    assert browser.state.loading is True

    adapter.gates["crmDeal"].set()
    await browser.wait_idle()
    assert [r.id for r in browser.state.records] == ["d1"]


@pytest.mark.asyncio
async def test_select_unknown_model_raises():
    browser, _ = await _connected_browser()

    with pytest.raises(ValueError, match="Unknown model"):
        browser.select_model("crmLead")


@pytest.mark.asyncio
async def test_refresh_keeps_rows_on_screen_until_new_data_arrives():
    browser, adapter = await _connected_browser()
    adapter.gates["genericContact"] = asyncio.Event()

    browser.refresh()

    assert browser.state.refreshing is True
    assert browser.state.loading is False
    assert [r.id for r in browser.state.records] == ["r1", "r2"]

    adapter.gates["genericContact"].set()
    await browser.wait_idle()
    assert browser.state.refreshing is False


@pytest.mark.asyncio
async def test_fetch_error_keeps_previous_rows_and_sets_error():
    browser, adapter = await _connected_browser()
    adapter.fail_records = "rate limited"

    browser.refresh()
    await browser.wait_idle()

    assert browser.state.error == "rate limited"
    assert [r.id for r in browser.state.records] == ["r1", "r2"]
    assert browser.state.refreshing is False


@pytest.mark.asyncio
async def test_pinning_refetches_with_projection_and_shows_empty_column():
    browser, adapter = await _connected_browser()

    browser.pin_field("phone")
    await browser.wait_idle()

    assert adapter.record_calls[-1] == ("genericContact", 3, ["phone"])
    assert browser.columns == ["phone", "age", "name"]

    browser.unpin_field("phone")
    await browser.wait_idle()

    assert adapter.record_calls[-1] == ("genericContact", 3, None)
    assert "phone" not in browser.columns


@pytest.mark.asyncio
async def test_toggle_field_and_duplicate_pins():
    browser, adapter = await _connected_browser()
    calls = len(adapter.record_calls)

    browser.toggle_field("phone")
    browser.pin_field("phone")
    await browser.wait_idle()

    assert browser.state.pinned == ["phone"]
    assert len(adapter.record_calls) == calls + 1

    browser.toggle_field("phone")
    await browser.wait_idle()
    assert browser.state.pinned == []


@pytest.mark.asyncio
async def test_limit_is_clamped_and_drives_fetch():
    browser, adapter = await _connected_browser()

    browser.set_limit(1)
    await browser.wait_idle()
    assert adapter.record_calls[-1][1] == 1
    assert [r.id for r in browser.visible_records] == ["r1"]

    calls = len(adapter.record_calls)
    browser.decrement_limit()
    browser.set_limit(0)
    await browser.wait_idle()
    assert browser.state.limit == 1
    assert len(adapter.record_calls) == calls

    browser.increment_limit()
    await browser.wait_idle()
    assert adapter.record_calls[-1][1] == 2


@pytest.mark.asyncio
async def test_successful_edit_triggers_full_refetch():
    browser, adapter = await _connected_browser()
    calls = len(adapter.record_calls)

    outcome = await browser.edit_cell("r1", "age", "37")
    await browser.wait_idle()

    assert outcome == CommitOutcome.UPDATED
    assert adapter.updates == [("genericContact", "r1", "age", 37)]
    assert len(adapter.record_calls) == calls + 1
    assert browser.cell_errors() == {}


@pytest.mark.asyncio
async def test_unchanged_edit_makes_no_calls():
    browser, adapter = await _connected_browser()
    calls = len(adapter.record_calls)

    outcome = await browser.edit_cell("r1", "name", "Ada")

    assert outcome == CommitOutcome.UNCHANGED
    assert adapter.updates == []
    assert len(adapter.record_calls) == calls


@pytest.mark.asyncio
async def test_failed_edit_is_local_to_the_cell():
    browser, adapter = await _connected_browser()
    adapter.fail_update = "Field is read-only"

    outcome = await browser.edit_cell("r2", "name", "Hopper")
    await browser.wait_idle()

    assert outcome == CommitOutcome.FAILED
    assert browser.cell_errors() == {("r2", "name"): "Field is read-only"}
    assert browser.cell("r2", "name").text == "Grace"
    assert browser.cell("r1", "name").error is None
    assert browser.state.error is None


@pytest.mark.asyncio
async def test_edits_are_refused_while_refreshing():
    browser, adapter = await _connected_browser()
    adapter.gates["genericContact"] = asyncio.Event()
    browser.refresh()

    outcome = await browser.edit_cell("r1", "name", "Augusta")

    assert outcome == CommitOutcome.IGNORED
    assert adapter.updates == []
    adapter.gates["genericContact"].set()
    await browser.wait_idle()


@pytest.mark.asyncio
async def test_empty_cell_of_record_is_editable():
    browser, adapter = await _connected_browser()

    editor = browser.cell("r2", "age")

    assert editor.editable is True
    assert editor.text == ""


@pytest.mark.asyncio
async def test_close_abandons_in_flight_results():
    adapter = _Adapter()
    adapter.gates["genericContact"] = asyncio.Event()
    browser = ResourceBrowser(adapter, "hubspot")

    browser.set_connected(True)
    await _until(lambda: adapter.record_calls)
    browser.close()
    adapter.gates["genericContact"].set()
    await browser.wait_idle()

    assert browser.closed is True
    assert browser.state.records == []


@pytest.mark.asyncio
async def test_disconnect_clears_everything():
    browser, _ = await _connected_browser()

    browser.set_connected(False)

    assert browser.state.connected is False
    assert browser.state.models == []
    assert browser.state.selected_model is None
    assert browser.state.records == []
    assert browser.columns == []


@pytest.mark.asyncio
async def test_field_metadata_comes_from_cache_when_returning_to_a_model():
    cache = FieldMetadataCache()
    browser, adapter = await _connected_browser(cache=cache)

    browser.select_model("crmDeal")
    await browser.wait_idle()
    browser.select_model("genericContact")
    await browser.wait_idle()

    assert adapter.field_calls == ["genericContact", "crmDeal"]

    browser.reload_fields()
    await browser.wait_idle()
    assert adapter.field_calls[-1] == "genericContact"
    assert len(adapter.field_calls) == 3


@pytest.mark.asyncio
async def test_on_change_is_notified():
    seen: list[str | None] = []
    browser, _ = await _connected_browser(
        on_change=lambda state: seen.append(state.selected_model)
    )

    assert "genericContact" in seen
    assert browser.state.selected_model == "genericContact"


@pytest.mark.asyncio
async def test_late_field_metadata_for_previous_model_is_discarded():
    adapter = _Adapter()
    adapter.field_gates["genericContact"] = asyncio.Event()
    browser = ResourceBrowser(adapter, "hubspot")

    browser.set_connected(True)
    await _until(lambda: adapter.field_calls)
    browser.select_model("crmDeal")
    await _until(lambda: browser.state.model_fields)

    adapter.field_gates["genericContact"].set()
    await browser.wait_idle()

    assert browser.state.selected_model == "crmDeal"
    assert [f.id for f in browser.state.model_fields] == ["amount"]


@pytest.mark.asyncio
async def test_model_list_from_before_reconnect_is_discarded():
    adapter = _Adapter()
    adapter.operations = ["genericContact::list"]
    first_call = asyncio.Event()
    adapter.operation_gates = [first_call]
    browser = ResourceBrowser(adapter, "hubspot")

    browser.set_connected(True)
    await _until(lambda: adapter.operation_calls == 1)
    browser.set_connected(False)
    adapter.operations = ["crmDeal::list"]
    browser.set_connected(True)
    await _until(lambda: browser.state.models)

    first_call.set()
    await browser.wait_idle()

    assert browser.state.models == ["crmDeal"]
    assert browser.state.selected_model == "crmDeal"
    assert [r.id for r in browser.state.records] == ["d1"]


@pytest.mark.asyncio
async def test_malformed_records_payload_surfaces_as_error():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/connection/operations"):
            return httpx.Response(200, json={"data": ["genericContact::list"]})
        if request.url.path.endswith("/fields"):
            return httpx.Response(200, json={"data": []})
        return httpx.Response(200, json={"data": 5})

    client = httpx.AsyncClient(
        base_url="https://api.test/v0", transport=httpx.MockTransport(handler)
    )
    adapter = MorphAdapter(client, KeyPair(public_key="pk"), session_token="tok")
    browser = ResourceBrowser(adapter, "hubspot")

    browser.set_connected(True)
    await browser.wait_idle()
    await client.aclose()

    assert browser.state.selected_model == "genericContact"
    assert browser.state.loading is False
    assert browser.state.error == "Connector API returned an unexpected payload."


@pytest.mark.asyncio
async def test_unexpected_adapter_failure_clears_loading_and_sets_error():
    class _Broken(_Adapter):
        async def list_records(self, model_id, *, limit, fields=None):
            raise TypeError("'int' object is not iterable")

    browser = ResourceBrowser(_Broken(), "hubspot")

    browser.set_connected(True)
    await browser.wait_idle()

    assert browser.state.loading is False
    assert browser.state.refreshing is False
    assert browser.state.error == "Unexpected error while loading data"
