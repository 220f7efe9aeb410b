import logging

from opsbot.core.nlu.types import ClassificationResult
from opsbot.core.resolver import resolve_entity

logger = logging.getLogger("runbook_skill")


async def run_runbook(context, result: ClassificationResult) -> None:
    # TODO: start the runbook job through the Automation API once the cloud adapter exposes it.
    runbook = resolve_entity(result.entities)
    if runbook:
        logger.info("RunbookSkill: launching %s", runbook)
        await context.post_reply(f"Launching the {runbook} runbook.")
    else:
        await context.post_reply("Which runbook do you want to run?")
    context.wait()
