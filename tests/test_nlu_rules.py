import pytest
from opsbot.core.nlu.rules import RulesNLU
from opsbot.core.nlu.types import ORDINAL_ENTITY

pytestmark = pytest.mark.asyncio

@pytest.fixture
def nlu():
    return RulesNLU()

async def test_list_subscriptions_intent(nlu):
    result = await nlu.classify("list my subscriptions")
    assert result.top_intent().name == "ListSubscriptions"
    assert result.top_intent().score == 0.95
    assert result.entities == ()
    assert result.query == "list my subscriptions"

async def test_use_subscription_with_ordinal(nlu):
    result = await nlu.classify("use the second one")
    assert result.top_intent().name == "UseSubscription"
    assert len(result.entities) == 1
    assert result.entities[0].type == ORDINAL_ENTITY
    assert result.entities[0].value == "second"

async def test_use_subscription_by_name(nlu):
    result = await nlu.classify("use the Production subscription")
    assert result.top_intent().name == "UseSubscription"
    assert [(e.type, e.value) for e in result.entities] == [("Subscription", "Production")]

async def test_list_vms_variations(nlu):
    test_cases = [
        "list my vms",
        "show my virtual machines",
        "what are my vms",
    ]
    for text in test_cases:
        result = await nlu.classify(text)
        assert result.top_intent().name == "ListVms", f"Failed for: {text}"

async def test_start_vm_with_name(nlu):
    result = await nlu.classify("start vm1")
    assert result.top_intent().name == "StartVm"
    assert [(e.type, e.value) for e in result.entities] == [("VirtualMachine", "vm1")]

async def test_stop_vm_variations(nlu):
    test_cases = [
        "stop the web-01 vm",
        "shut down web-01",
        "power off web-01",
    ]
    for text in test_cases:
        result = await nlu.classify(text)
        assert result.top_intent().name == "StopVm", f"Failed for: {text}"
        assert result.entities[0].value == "web-01", f"Failed for: {text}"

async def test_start_vm_with_ordinal(nlu):
    result = await nlu.classify("start the second vm")
    assert result.top_intent().name == "StartVm"
    assert [(e.type, e.value) for e in result.entities] == [(ORDINAL_ENTITY, "second")]

async def test_start_vm_without_target(nlu):
    result = await nlu.classify("start a vm")
    assert result.top_intent().name == "StartVm"
    assert result.entities == ()

async def test_run_runbook(nlu):
    result = await nlu.classify("run the backup runbook")
    assert result.top_intent().name == "RunRunbook"
    assert [(e.type, e.value) for e in result.entities] == [("Runbook", "backup")]

async def test_runbook_without_name(nlu):
    result = await nlu.classify("run a runbook")
    assert result.top_intent().name == "RunRunbook"
    assert result.entities == ()

async def test_unknown_text(nlu):
    result = await nlu.classify("random gibberish text")
    assert result.intents == ()
    assert result.entities == ()
    assert result.top_intent() is None

async def test_intents_sorted_descending(nlu):
    # matches both the list and the use rule
    result = await nlu.classify("show my subscriptions and use the first")
    scores = [i.score for i in result.intents]
    assert scores == sorted(scores, reverse=True)
    assert result.intent_names()[0] == "ListSubscriptions"

async def test_whitespace_handling(nlu):
    result = await nlu.classify("   list my subscriptions   ")
    assert result.top_intent().name == "ListSubscriptions"
    assert result.query == "list my subscriptions"
