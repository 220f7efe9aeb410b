"""
Tests for the Azure Resource Manager cloud adapter.
"""
import pytest
from unittest.mock import AsyncMock, patch
import httpx

from opsbot.core.cloud.azure_adapter import AzureAdapter
from opsbot.core.cloud.cloud import resource_group_of
from opsbot.core.errors import ConfigurationError, RemoteCallFault

pytestmark = pytest.mark.asyncio

BASE = "https://management.azure.com"
VM_ID = "/subscriptions/s1/resourceGroups/web-rg/providers/Microsoft.Compute/virtualMachines/vm1"


def response(status=200, json=None, content=None):
    kwargs = {"json": json} if json is not None else {"content": content or b""}
    return httpx.Response(status, request=httpx.Request("GET", BASE), **kwargs)


def adapter():
    return AzureAdapter(management_url=BASE, access_token="token-xyz", timeout=5.0)


async def test_list_subscriptions_follows_next_link():
    pages = [
        response(json={
            "value": [{"subscriptionId": "s1", "displayName": "Sub-A", "state": "Enabled"}],
            "nextLink": f"{BASE}/subscriptions?api-version=2020-01-01&$skiptoken=abc",
        }),
        response(json={"value": [{"subscriptionId": "s2", "displayName": "Sub-B"}]}),
    ]

    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.side_effect = pages
        subscriptions = await adapter().list_subscriptions()

    assert [(s.id, s.display_name) for s in subscriptions] == [("s1", "Sub-A"), ("s2", "Sub-B")]
    first, second = mock_request.call_args_list
    assert first.kwargs["params"] == {"api-version": "2020-01-01"}
    assert first.kwargs["headers"]["Authorization"] == "Bearer token-xyz"
    assert second.args[1].endswith("$skiptoken=abc")
    assert second.kwargs["params"] is None

async def test_list_virtual_machines():
    body = {"value": [{"name": "vm1", "id": VM_ID, "location": "westeurope"}]}

    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.return_value = response(json=body)
        vms = await adapter().list_virtual_machines("s1")

    assert len(vms) == 1
    assert vms[0].name == "vm1"
    assert vms[0].resource_group == "web-rg"
    assert vms[0].location == "westeurope"
    assert mock_request.call_args.args[1] == f"{BASE}/subscriptions/s1/providers/Microsoft.Compute/virtualMachines"

async def test_stop_posts_power_off():
    listing = response(json={"value": [{"name": "vm1", "id": VM_ID}]})
    accepted = response(status=202)

    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.side_effect = [listing, accepted]
        await adapter().stop_virtual_machine("s1", "VM1")

    method, url = mock_request.call_args.args
    assert method == "POST"
    assert url == f"{BASE}{VM_ID}/powerOff"

async def test_start_posts_start():
    listing = response(json={"value": [{"name": "vm1", "id": VM_ID}]})

    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.side_effect = [listing, response(status=202)]
        await adapter().start_virtual_machine("s1", "vm1")

    assert mock_request.call_args.args == ("POST", f"{BASE}{VM_ID}/start")

async def test_unknown_vm_is_remote_call_fault():
    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.return_value = response(json={"value": []})
        with pytest.raises(RemoteCallFault, match="not found"):
            await adapter().start_virtual_machine("s1", "ghost")

async def test_http_error_uses_arm_message():
    error = response(status=409, json={"error": {"code": "Conflict", "message": "VM is being deallocated"}})

    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.return_value = error
        with pytest.raises(RemoteCallFault) as info:
            await adapter().list_subscriptions()

    assert str(info.value) == "VM is being deallocated"
    assert info.value.operation == "list_subscriptions"

async def test_network_error_is_remote_call_fault():
    with patch("httpx.AsyncClient.request", new_callable=AsyncMock) as mock_request:
        mock_request.side_effect = httpx.ConnectError("refused")
        with pytest.raises(RemoteCallFault, match="network error"):
            await adapter().list_virtual_machines("s1")

async def test_missing_token_fails_fast():
    with pytest.raises(ConfigurationError):
        AzureAdapter(management_url=BASE, access_token=None)

async def test_resource_group_of():
    assert resource_group_of(VM_ID) == "web-rg"
    assert resource_group_of("") == ""
