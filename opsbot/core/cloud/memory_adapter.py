import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Tuple

from ..errors import RemoteCallFault
from .cloud import CloudAdapter, Subscription, VirtualMachine

logger = logging.getLogger("cloud")


class InMemoryCloudAdapter(CloudAdapter):
    """
    Cloud adapter backed by in-process data.

    Used in local mode and in tests. Tracks power state and records every
    call as (operation, *args) in `calls`.
    """

    def __init__(
        self,
        subscriptions: Iterable[Subscription] = (),
        virtual_machines: Optional[Dict[str, Iterable[VirtualMachine]]] = None,
        latency_s: float = 0.0,
    ):
        self.subscriptions: List[Subscription] = list(subscriptions)
        self.virtual_machines: Dict[str, List[VirtualMachine]] = {
            sid: list(vms) for sid, vms in (virtual_machines or {}).items()
        }
        self.latency_s = latency_s
        self.calls: List[Tuple] = []

    @classmethod
    def demo(cls) -> "InMemoryCloudAdapter":
        return cls(
            subscriptions=[
                Subscription(id="0f3c5e2a-demo-dev", display_name="Development"),
                Subscription(id="7b1d9a4c-demo-prod", display_name="Production"),
            ],
            virtual_machines={
                "0f3c5e2a-demo-dev": [
                    VirtualMachine(name="dev-web-01", resource_group="dev-rg", power_state="running"),
                    VirtualMachine(name="dev-sql-01", resource_group="dev-rg", power_state="stopped"),
                ],
                "7b1d9a4c-demo-prod": [
                    VirtualMachine(name="prod-web-01", resource_group="prod-rg", power_state="running"),
                ],
            },
        )

    async def _call(self, *call) -> None:
        self.calls.append(call)
        if self.latency_s:
            await asyncio.sleep(self.latency_s)

    def _vms(self, operation: str, subscription_id: str) -> List[VirtualMachine]:
        if not any(s.id == subscription_id for s in self.subscriptions):
            raise RemoteCallFault(operation, f"subscription '{subscription_id}' was not found")
        return self.virtual_machines.get(subscription_id, [])

    def _vm(self, operation: str, subscription_id: str, name: str) -> VirtualMachine:
        for vm in self._vms(operation, subscription_id):
            if vm.name.lower() == name.lower():
                return vm
        raise RemoteCallFault(operation, f"virtual machine '{name}' was not found")

    def calls_to(self, operation: str) -> List[Tuple]:
        return [c for c in self.calls if c[0] == operation]

    async def list_subscriptions(self) -> List[Subscription]:
        await self._call("list_subscriptions")
        return list(self.subscriptions)

    async def list_virtual_machines(self, subscription_id: str) -> List[VirtualMachine]:
        await self._call("list_virtual_machines", subscription_id)
        return list(self._vms("list_virtual_machines", subscription_id))

    async def start_virtual_machine(self, subscription_id: str, name: str) -> None:
        await self._call("start_virtual_machine", subscription_id, name)
        vm = self._vm("start_virtual_machine", subscription_id, name)
        vm.power_state = "running"
        logger.info("started %s in %s", vm.name, subscription_id)

    async def stop_virtual_machine(self, subscription_id: str, name: str) -> None:
        await self._call("stop_virtual_machine", subscription_id, name)
        vm = self._vm("stop_virtual_machine", subscription_id, name)
        vm.power_state = "stopped"
        logger.info("stopped %s in %s", vm.name, subscription_id)
