import json

import httpx
import pytest
from typer.testing import CliRunner

from connops.cli import cli
from connops.cli.common import context

runner = CliRunner()


def _routes(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/v0/resources/genericContact" and request.method == "GET":
        return httpx.Response(
            200,
            json={"data": [{"id": "r1", "fields": {"name": "Ada", "age": 36}}]},
        )
    if path == "/v0/resources/genericContact/r1" and request.method == "PATCH":
        return httpx.Response(200, json={"data": None})
    if path == "/v0/models/genericContact/fields":
        return httpx.Response(200, json={"data": [{"id": "name", "name": "Full name"}]})
    if path == "/v0/connection":
        return httpx.Response(200, json={"data": {"status": "authorized"}})
    if path == "/v0/connection/operations":
        return httpx.Response(
            200, json={"data": {"operations": ["genericContact::list", "crmDeal::update"]}}
        )
    return httpx.Response(404, json={"error": {"code": "NOT_FOUND", "message": "nope"}})


@pytest.fixture
def requests(monkeypatch):
    seen: list[httpx.Request] = []

    def handler(request):
        seen.append(request)
        return _routes(request)

    def fake_client(settings, transport=None):
        return httpx.AsyncClient(
            base_url="https://api.test/v0", transport=httpx.MockTransport(handler)
        )

    monkeypatch.setattr(context, "get_client", fake_client)
    return seen


def test_connectors_filter_by_name():
    result = runner.invoke(cli.app, ["connectors", "--name", "^hub"])

    assert result.exit_code == 0
    assert "hubspot" in result.output
    assert "salesforce" not in result.output


def test_connectors_invalid_regex_is_usage_error():
    result = runner.invoke(cli.app, ["connectors", "--name", "["])

    assert result.exit_code == 2


def test_unknown_connector_is_rejected():
    result = runner.invoke(cli.app, ["records", "--connector", "nope", "list", "x", "-t", "tok"])

    assert result.exit_code == 2
    assert "Unknown connector" in result.output


def test_models_list(requests):
    result = runner.invoke(cli.app, ["models", "list", "--token", "tok"])

    assert result.exit_code == 0
    assert "genericContact" in result.output
    assert "crmDeal" not in result.output
    assert requests[0].headers["authorization"] == "Bearer tok"


def test_records_list_renders_table(requests):
    result = runner.invoke(
        cli.app, ["records", "list", "genericContact", "-t", "tok", "-f", "name"]
    )

    assert result.exit_code == 0
    assert "Ada" in result.output
    assert "Full name" in result.output
    listed = next(r for r in requests if r.url.path == "/v0/resources/genericContact")
    assert listed.url.params["fields"] == "name"
    assert listed.url.params["limit"] == "3"


def test_records_list_reports_remote_error(requests):
    result = runner.invoke(cli.app, ["records", "list", "crmDeal", "-t", "tok"])

    assert result.exit_code == 1
    assert "nope" in result.output


def test_records_update_sends_number(requests):
    result = runner.invoke(
        cli.app,
        ["records", "update", "genericContact", "r1", "age", "37", "--number", "--no-confirm", "-t", "tok"],
    )

    assert result.exit_code == 0
    patch = next(r for r in requests if r.method == "PATCH")
    assert json.loads(patch.content) == {"fields": {"age": 37}}


def test_records_update_rejects_non_number():
    result = runner.invoke(
        cli.app,
        ["records", "update", "genericContact", "r1", "age", "old", "--number", "--no-confirm", "-t", "tok"],
    )

    assert result.exit_code == 2


def test_session_status_authorized(requests):
    result = runner.invoke(cli.app, ["session", "status", "--token", "tok"])

    assert result.exit_code == 0
    assert "authorized" in result.output


def test_session_create_for_demo_connector_warns(requests, monkeypatch):
    monkeypatch.delenv("CONNOPS_PUBLIC_KEY", raising=False)

    result = runner.invoke(cli.app, ["session", "--connector", "pipedrive", "create"])

    assert "mocked data" in result.output
    assert result.exit_code == 1
