from dataclasses import dataclass
from typing import List, Optional


@dataclass(slots=True)
class Subscription:
    id: str
    display_name: str
    state: Optional[str] = None


@dataclass(slots=True)
class VirtualMachine:
    name: str
    id: str = ""                      # full resource id
    resource_group: str = ""
    location: Optional[str] = None
    power_state: Optional[str] = None  # "running", "stopped", ... when known


class CloudAdapter:
    """Protocol for cloud management adapters - all calls may raise RemoteCallFault."""

    async def list_subscriptions(self) -> List[Subscription]:
        raise NotImplementedError

    async def list_virtual_machines(self, subscription_id: str) -> List[VirtualMachine]:
        raise NotImplementedError

    async def start_virtual_machine(self, subscription_id: str, name: str) -> None:
        raise NotImplementedError

    async def stop_virtual_machine(self, subscription_id: str, name: str) -> None:
        raise NotImplementedError


def resource_group_of(resource_id: str) -> str:
    """Extract the resource group segment from an ARM resource id."""
    parts = resource_id.strip("/").split("/")
    for i, part in enumerate(parts[:-1]):
        if part.lower() == "resourcegroups":
            return parts[i + 1]
    return ""
