import asyncio
import logging
from typing import Optional

from opsbot.core.bus import Bus
from opsbot.core.cloud.cloud import CloudAdapter
from opsbot.core.config import Config
from opsbot.core.contracts import BotReply, NLUFault, UserUtterance
from opsbot.core.conversation import ConversationManager
from opsbot.core.dispatcher import Dispatcher
from opsbot.core.nlu.nlu import NLU, NLUAdapter
from opsbot.core.registry import FALLBACK_INTENT, HandlerRegistry
from opsbot.skills.fallback import not_understood
from opsbot.skills.runbooks import run_runbook
from opsbot.skills.subscriptions import SubscriptionSkill
from opsbot.skills.virtual_machines import VirtualMachineSkill

REPL_CONVERSATION = "repl"


def build_registry(cloud: CloudAdapter) -> HandlerRegistry:
    """The static set of supported intents, plus the fallback."""
    return HandlerRegistry([
        (FALLBACK_INTENT, not_understood),
        *SubscriptionSkill(cloud).routes(),
        *VirtualMachineSkill(cloud).routes(),
        ("RunRunbook", run_runbook),
    ])


async def build_engine(
    bus: Bus,
    nlu_adapter: Optional[NLUAdapter] = None,
    cloud: Optional[CloudAdapter] = None,
) -> ConversationManager:
    """
    Wire registry, dispatcher and conversation manager onto the bus.

    Adapters default to the configured ones; a missing credential raises
    ConfigurationError here, before any utterance is accepted.
    """
    nlu = NLU(nlu_adapter or Config.get_nlu_adapter())
    cloud = cloud or Config.get_cloud_adapter()
    dispatcher = Dispatcher(nlu, build_registry(cloud), intent_threshold=Config.INTENT_THRESHOLD)
    manager = ConversationManager(bus, dispatcher, idle_timeout_s=Config.CONVERSATION_IDLE_TIMEOUT)
    await manager.start()
    return manager


async def repl(bus: Bus) -> None:
    """Tiny REPL that publishes user.utterance and prints bot.reply."""
    print("\nopsbot interactive mode")
    print("Try 'list my subscriptions', 'use the first one', 'list my vms', 'start a vm'. Type 'quit' to exit.")

    async def show_reply(payload: dict):
        reply = BotReply(**payload)
        print(f"bot: {reply.text}")

    async def show_fault(payload: dict):
        fault = NLUFault(**payload)
        print(f"[nlu fault] {fault.error}")

    bus.subscribe("bot.reply", show_reply)
    bus.subscribe("nlu.fault", show_fault)

    while True:
        try:
            print("\n> ", end="", flush=True)
            # input in worker thread to keep event loop responsive
            user_input = await asyncio.to_thread(input)
            user_input = user_input.strip()

            if user_input.lower() in ["quit", "exit", "q"]:
                break

            if user_input:
                event = UserUtterance(conversation_id=REPL_CONVERSATION, text=user_input)
                await bus.publish(event.topic, event.dict())

        except KeyboardInterrupt:
            break
        except EOFError:
            break


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(name)s: %(message)s")
    bus = Bus()
    print("Starting opsbot...")
    Config.print_config()
    await build_engine(bus)
    print("opsbot ready.")
    await repl(bus)
    bus.clear()
    print("Stopped.")


if __name__ == "__main__":
    asyncio.run(main())
