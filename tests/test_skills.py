import pytest

from opsbot.core.cloud.cloud import Subscription, VirtualMachine
from opsbot.core.cloud.memory_adapter import InMemoryCloudAdapter
from opsbot.core.context import ConversationContext, TurnState
from opsbot.core.errors import RemoteCallFault
from opsbot.core.nlu.types import ClassificationResult, EntityMatch, IntentScore, ORDINAL_ENTITY
from opsbot.core.state import SUBSCRIPTION_ID, SUBSCRIPTION_NAME
from opsbot.skills.fallback import not_understood
from opsbot.skills.runbooks import run_runbook
from opsbot.skills.subscriptions import SubscriptionSkill
from opsbot.skills.virtual_machines import SELECT_SUBSCRIPTION, VirtualMachineSkill

pytestmark = pytest.mark.asyncio


@pytest.fixture
def cloud():
    return InMemoryCloudAdapter(
        subscriptions=[Subscription("s1", "Sub-A"), Subscription("s2", "Sub-B")],
        virtual_machines={
            "s1": [VirtualMachine("vm1"), VirtualMachine("vm2")],
            "s2": [],
        },
    )


@pytest.fixture
def ctx():
    return ConversationContext("c1")


class BrokenCloud(InMemoryCloudAdapter):
    async def list_subscriptions(self):
        raise RemoteCallFault("list_subscriptions", "service unavailable")

    async def list_virtual_machines(self, subscription_id):
        raise RemoteCallFault("list_virtual_machines", "service unavailable")


def classified(intent, *entities):
    return ClassificationResult(query="q", intents=(IntentScore(intent, 0.9),), entities=tuple(entities))


async def test_fallback_lists_considered_intents(ctx):
    result = ClassificationResult(intents=(IntentScore("None", 0.6), IntentScore("ListVms", 0.1)))
    await not_understood(ctx, result)
    assert ctx.drain_replies() == ["Sorry I did not understand: None, ListVms"]

async def test_fallback_with_empty_classification(ctx):
    await not_understood(ctx, ClassificationResult.empty("???"))
    assert ctx.drain_replies() == ["Sorry I did not understand: "]

async def test_list_subscriptions_numbered(cloud, ctx):
    await SubscriptionSkill(cloud).list_subscriptions(ctx, classified("ListSubscriptions"))
    assert ctx.drain_replies() == ["Your subscriptions are: \n1. Sub-A\n2. Sub-B"]
    assert ctx.turn_state is TurnState.AWAITING

async def test_list_subscriptions_empty(ctx):
    await SubscriptionSkill(InMemoryCloudAdapter()).list_subscriptions(ctx, classified("ListSubscriptions"))
    assert ctx.drain_replies() == ["You don't have any subscriptions."]

async def test_list_subscriptions_failure_is_reported(ctx):
    await SubscriptionSkill(BrokenCloud()).list_subscriptions(ctx, classified("ListSubscriptions"))
    assert ctx.drain_replies() == ["Sorry, I could not list your subscriptions: service unavailable"]

async def test_use_subscription_by_ordinal_stores_id(cloud, ctx):
    result = classified("UseSubscription", EntityMatch(ORDINAL_ENTITY, "second"))
    await SubscriptionSkill(cloud).use_subscription(ctx, result)
    assert ctx.state.get(SUBSCRIPTION_ID) == "s2"
    assert ctx.state.get(SUBSCRIPTION_NAME) == "Sub-B"
    assert ctx.drain_replies() == ["Using the Sub-B subscription."]

async def test_use_subscription_ordinal_with_duplicate_display_names(ctx):
    cloud = InMemoryCloudAdapter(
        subscriptions=[Subscription("s1", "Pay-As-You-Go"), Subscription("s2", "Pay-As-You-Go")],
    )
    result = classified("UseSubscription", EntityMatch(ORDINAL_ENTITY, "second"))
    await SubscriptionSkill(cloud).use_subscription(ctx, result)
    assert ctx.state.subscription_id == "s2"
    assert ctx.state.subscription_name == "Pay-As-You-Go"

async def test_use_subscription_by_name_is_case_insensitive(cloud, ctx):
    result = classified("UseSubscription", EntityMatch("Subscription", "sub-a", 0.8))
    await SubscriptionSkill(cloud).use_subscription(ctx, result)
    assert ctx.state.subscription_id == "s1"
    assert ctx.drain_replies() == ["Using the Sub-A subscription."]

async def test_use_subscription_without_entities_asks(cloud, ctx):
    await SubscriptionSkill(cloud).use_subscription(ctx, classified("UseSubscription"))
    assert ctx.state.snapshot() == {}
    assert ctx.drain_replies() == ["Which subscription do you want to use?"]

async def test_use_subscription_ordinal_out_of_range(cloud, ctx):
    result = classified("UseSubscription", EntityMatch(ORDINAL_ENTITY, "fifth"))
    await SubscriptionSkill(cloud).use_subscription(ctx, result)
    assert ctx.state.snapshot() == {}
    reply = ctx.drain_replies()[0]
    assert reply.startswith("I could not find that subscription.")
    assert reply.endswith("Which subscription do you want to use?")

async def test_use_subscription_unknown_name(cloud, ctx):
    result = classified("UseSubscription", EntityMatch("Subscription", "Sub-Z", 0.8))
    await SubscriptionSkill(cloud).use_subscription(ctx, result)
    assert ctx.state.subscription_id is None
    assert "Sub-Z" in ctx.drain_replies()[0]

async def test_list_vms_without_subscription_skips_cloud(cloud, ctx):
    await VirtualMachineSkill(cloud).list_vms(ctx, classified("ListVms"))
    assert cloud.calls == []
    assert ctx.drain_replies() == [SELECT_SUBSCRIPTION]

async def test_list_vms_numbered(cloud, ctx):
    ctx.state.use_subscription("s1", "Sub-A")
    await VirtualMachineSkill(cloud).list_vms(ctx, classified("ListVms"))
    assert cloud.calls == [("list_virtual_machines", "s1")]
    assert ctx.drain_replies() == ["Available VMs are: \n1. vm1\n2. vm2"]

async def test_list_vms_empty_subscription(cloud, ctx):
    ctx.state.use_subscription("s2", "Sub-B")
    await VirtualMachineSkill(cloud).list_vms(ctx, classified("ListVms"))
    assert ctx.drain_replies() == ["There are no virtual machines in the Sub-B subscription."]

async def test_list_vms_failure_is_reported(ctx):
    ctx.state.use_subscription("s1", "Sub-A")
    await VirtualMachineSkill(BrokenCloud()).list_vms(ctx, classified("ListVms"))
    assert ctx.drain_replies() == ["Sorry, I could not list your virtual machines: service unavailable"]

async def test_start_vm_without_subscription_skips_form(cloud, ctx):
    await VirtualMachineSkill(cloud).start_vm(ctx, classified("StartVm"))
    assert cloud.calls == []
    assert not ctx.in_form
    assert ctx.drain_replies() == [SELECT_SUBSCRIPTION]

async def test_start_vm_opens_form_with_prompt(cloud, ctx):
    ctx.state.use_subscription("s1", "Sub-A")
    await VirtualMachineSkill(cloud).start_vm(ctx, classified("StartVm"))
    assert ctx.in_form
    assert ctx.turn_state is TurnState.FORM
    assert ctx.drain_replies() == ["Which virtual machine do you want to start?\n1. vm1\n2. vm2"]
    assert cloud.calls_to("start_virtual_machine") == []

async def test_stop_vm_with_no_vms_does_not_open_form(cloud, ctx):
    ctx.state.use_subscription("s2", "Sub-B")
    await VirtualMachineSkill(cloud).stop_vm(ctx, classified("StopVm"))
    assert not ctx.in_form
    assert ctx.drain_replies() == ["There are no virtual machines to stop in the Sub-B subscription."]

async def test_run_runbook_with_name(ctx):
    await run_runbook(ctx, classified("RunRunbook", EntityMatch("Runbook", "backup", 0.9)))
    assert ctx.drain_replies() == ["Launching the backup runbook."]

async def test_run_runbook_without_name(ctx):
    await run_runbook(ctx, classified("RunRunbook"))
    assert ctx.drain_replies() == ["Which runbook do you want to run?"]
