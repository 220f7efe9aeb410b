"""
Cloud adapter for Azure Resource Manager.

Talks to the ARM REST API with a bearer token taken from configuration.
Maintains the same interface as InMemoryCloudAdapter for drop-in replacement.

API used:
    GET  /subscriptions
    GET  /subscriptions/{id}/providers/Microsoft.Compute/virtualMachines
    POST {vm id}/start
    POST {vm id}/powerOff
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..errors import ConfigurationError, RemoteCallFault
from .cloud import CloudAdapter, Subscription, VirtualMachine, resource_group_of

logger = logging.getLogger("azure")

SUBSCRIPTIONS_API_VERSION = "2020-01-01"
COMPUTE_API_VERSION = "2023-09-01"


class AzureAdapter(CloudAdapter):
    def __init__(self, management_url: str, access_token: Optional[str], timeout: float = 30.0):
        if not access_token:
            raise ConfigurationError("AZURE_ACCESS_TOKEN must be set to use the Azure adapter")
        self.management_url = management_url.rstrip("/")
        self.access_token = access_token
        self.timeout = timeout

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}", "Accept": "application/json"}

    async def _request(
        self,
        operation: str,
        method: str,
        url: str,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Issue one ARM call and return the decoded JSON body (None when empty).

        Raises:
            RemoteCallFault: On timeout, HTTP error status, network error or bad JSON
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.request(method, url, params=params, headers=self.headers)
                response.raise_for_status()
                return response.json() if response.content else None
            except httpx.TimeoutException as e:
                logger.error("%s timed out after %.1fs", operation, self.timeout)
                raise RemoteCallFault(operation, f"the request timed out after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                logger.error("%s failed: %s %s", operation, e.response.status_code, e.response.text)
                raise RemoteCallFault(operation, _error_message(e.response)) from e
            except httpx.RequestError as e:
                logger.error("%s network error: %s", operation, e)
                raise RemoteCallFault(operation, f"network error: {e}") from e
            except ValueError as e:
                logger.error("%s returned invalid JSON: %s", operation, e)
                raise RemoteCallFault(operation, "the service returned an invalid response") from e

    async def _list(self, operation: str, url: str, api_version: str) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        params: Optional[Dict[str, str]] = {"api-version": api_version}
        next_url: Optional[str] = url
        while next_url:
            body = await self._request(operation, "GET", next_url, params=params) or {}
            items.extend(body.get("value") or [])
            next_url = body.get("nextLink")
            params = None  # nextLink already carries the query string
        return items

    async def list_subscriptions(self) -> List[Subscription]:
        url = f"{self.management_url}/subscriptions"
        raw = await self._list("list_subscriptions", url, SUBSCRIPTIONS_API_VERSION)
        subscriptions = [
            Subscription(id=s["subscriptionId"], display_name=s.get("displayName") or s["subscriptionId"], state=s.get("state"))
            for s in raw
            if s.get("subscriptionId")
        ]
        logger.info("Listed %d subscriptions", len(subscriptions))
        return subscriptions

    async def list_virtual_machines(self, subscription_id: str) -> List[VirtualMachine]:
        url = f"{self.management_url}/subscriptions/{subscription_id}/providers/Microsoft.Compute/virtualMachines"
        raw = await self._list("list_virtual_machines", url, COMPUTE_API_VERSION)
        vms = [
            VirtualMachine(
                name=v["name"],
                id=v.get("id", ""),
                resource_group=resource_group_of(v.get("id", "")),
                location=v.get("location"),
            )
            for v in raw
            if v.get("name")
        ]
        logger.info("Listed %d virtual machines in subscription %s", len(vms), subscription_id)
        return vms

    async def _find(self, operation: str, subscription_id: str, name: str) -> VirtualMachine:
        for vm in await self.list_virtual_machines(subscription_id):
            if vm.name.lower() == name.lower():
                return vm
        raise RemoteCallFault(operation, f"virtual machine '{name}' was not found")

    async def _power_action(self, operation: str, action: str, subscription_id: str, name: str) -> None:
        vm = await self._find(operation, subscription_id, name)
        if not vm.id:
            raise RemoteCallFault(operation, f"virtual machine '{name}' has no resource id")
        url = f"{self.management_url}{vm.id}/{action}"
        logger.info("%s: %s (%s)", operation, vm.name, vm.resource_group)
        await self._request(operation, "POST", url, params={"api-version": COMPUTE_API_VERSION})

    async def start_virtual_machine(self, subscription_id: str, name: str) -> None:
        await self._power_action("start_virtual_machine", "start", subscription_id, name)

    async def stop_virtual_machine(self, subscription_id: str, name: str) -> None:
        await self._power_action("stop_virtual_machine", "powerOff", subscription_id, name)


def _error_message(response: httpx.Response) -> str:
    """Prefer ARM's error.message; fall back to the status line."""
    try:
        error = response.json().get("error") or {}
        if error.get("message"):
            return error["message"]
    except (ValueError, AttributeError):
        pass
    return f"HTTP {response.status_code}"
