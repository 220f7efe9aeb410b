import logging

from opsbot.core.nlu.types import ClassificationResult

logger = logging.getLogger("fallback_skill")


async def not_understood(context, result: ClassificationResult) -> None:
    """Reply with whatever intents the classifier considered; never touches external state."""
    logger.info("FallbackSkill: no handler for '%s'", result.query)
    await context.post_reply("Sorry I did not understand: " + ", ".join(result.intent_names()))
    context.wait()
