import pytest

from connops.core.adapters.morph import ConnectorApiError
from connops.core.discovery import discover_models, models_with_list_operations


def test_models_with_list_operations_keeps_first_occurrence_order():
    operations = [
        "genericContact::retrieve",
        "genericContact::list",
        "crmDeal::list",
        "crmDeal::update",
        "genericContact::list",
        "crmAccount::listFields",
        "broken",
        "::list",
        "crmStage::list",
    ]

    assert models_with_list_operations(operations) == [
        "genericContact",
        "crmDeal",
        "crmStage",
    ]


def test_models_with_list_operations_empty():
    assert models_with_list_operations([]) == []


@pytest.mark.asyncio
async def test_discover_models_fails_closed():
    class _Adapter:
        async def list_operations(self):
            raise ConnectorApiError("unreachable")

    assert await discover_models(_Adapter()) == []


@pytest.mark.asyncio
async def test_discover_models_uses_capabilities():
    class _Adapter:
        async def list_operations(self):
            return ["crmLead::list", "crmLead::create"]

    assert await discover_models(_Adapter()) == ["crmLead"]
