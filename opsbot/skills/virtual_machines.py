"""
Virtual machine intents.

ListVms replies directly. StartVm/StopVm hand the conversation to a VmForm
seeded with the subscription's VM names; the matching continuation runs the
power operation once the form completes, or acknowledges a cancel.
"""

import logging

from opsbot.core.cloud.cloud import CloudAdapter
from opsbot.core.errors import RemoteCallFault, StateMissing
from opsbot.core.forms.vm_form import Operation, SubFlowResult, VmForm, VmFormSeed
from opsbot.core.nlu.types import ClassificationResult
from opsbot.core.state import SUBSCRIPTION_ID

logger = logging.getLogger("vm_skill")

SELECT_SUBSCRIPTION = (
    "Please select a subscription first. "
    "Ask me to list your subscriptions, then tell me which one to use."
)
CANCELED = "You have canceled the operation. What would you like to do next?"

_PAST = {Operation.START: "running", Operation.STOP: "stopped"}
_PROGRESSIVE = {Operation.START: "Starting", Operation.STOP: "Stopping"}


class VirtualMachineSkill:
    def __init__(self, cloud: CloudAdapter):
        self.cloud = cloud

    def routes(self):
        return [
            ("ListVms", self.list_vms),
            ("StartVm", self.start_vm),
            ("StopVm", self.stop_vm),
        ]

    async def list_vms(self, context, result: ClassificationResult) -> None:
        try:
            subscription_id = context.state.require(SUBSCRIPTION_ID)
        except StateMissing:
            await context.post_reply(SELECT_SUBSCRIPTION)
            context.wait()
            return

        try:
            vms = await self.cloud.list_virtual_machines(subscription_id)
        except RemoteCallFault as e:
            await context.post_reply(f"Sorry, I could not list your virtual machines: {e}")
            context.wait()
            return

        if not vms:
            name = context.state.subscription_name or subscription_id
            await context.post_reply(f"There are no virtual machines in the {name} subscription.")
        else:
            listing = "".join(f"\n{i}. {vm.name}" for i, vm in enumerate(vms, start=1))
            await context.post_reply(f"Available VMs are: {listing}")
        context.wait()

    async def start_vm(self, context, result: ClassificationResult) -> None:
        await self._launch_form(context, result, Operation.START, self.on_start_complete)

    async def stop_vm(self, context, result: ClassificationResult) -> None:
        await self._launch_form(context, result, Operation.STOP, self.on_stop_complete)

    async def on_start_complete(self, context, outcome: SubFlowResult) -> None:
        await self._complete(context, outcome, Operation.START)

    async def on_stop_complete(self, context, outcome: SubFlowResult) -> None:
        await self._complete(context, outcome, Operation.STOP)

    async def _launch_form(self, context, result: ClassificationResult, operation: Operation, continuation) -> None:
        try:
            subscription_id = context.state.require(SUBSCRIPTION_ID)
        except StateMissing:
            await context.post_reply(SELECT_SUBSCRIPTION)
            context.wait()
            return

        try:
            names = tuple(vm.name for vm in await self.cloud.list_virtual_machines(subscription_id))
        except RemoteCallFault as e:
            await context.post_reply(f"Sorry, I could not list your virtual machines: {e}")
            context.wait()
            return

        if not names:
            name = context.state.subscription_name or subscription_id
            await context.post_reply(f"There are no virtual machines to {operation.verb} in the {name} subscription.")
            context.wait()
            return

        logger.info("VirtualMachineSkill: %s form with %d candidates", operation.verb, len(names))
        form = VmForm(VmFormSeed(available_names=names, operation=operation, prefill=result.entities))
        await context.call(form, continuation)

    async def _complete(self, context, outcome: SubFlowResult, operation: Operation) -> None:
        if outcome.canceled:
            await context.post_reply(CANCELED)
            context.wait()
            return

        vm = outcome.selected_name
        subscription_id = context.state.subscription_id
        if subscription_id is None:
            await context.post_reply(SELECT_SUBSCRIPTION)
            context.wait()
            return

        await context.post_reply(f"{_PROGRESSIVE[operation]} the {vm} virtual machine.")
        action = self.cloud.start_virtual_machine if operation is Operation.START else self.cloud.stop_virtual_machine
        try:
            await action(subscription_id, vm)
        except RemoteCallFault as e:
            logger.warning("VirtualMachineSkill: %s %s failed: %s", operation.verb, vm, e)
            await context.post_reply(f"Sorry, I could not {operation.verb} the {vm} virtual machine: {e}")
        else:
            await context.post_reply(f"The {vm} virtual machine is now {_PAST[operation]}.")
        context.wait()
