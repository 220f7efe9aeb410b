import logging
from typing import Optional

from .context import ConversationContext
from .contracts import NLUFault, NLUIntent, same_trace
from .errors import ClassificationFault, ConfigurationError
from .nlu.nlu import NLU
from .nlu.types import ClassificationResult, IntentScore
from .registry import HandlerRegistry

logger = logging.getLogger("dispatcher")


class Dispatcher:
    """
    Turns one utterance into one handler invocation:
      - classify via the NLU client,
      - pick the top-scoring intent (first wins on ties),
      - run its handler, or the fallback when nothing matches.
    """

    def __init__(self, nlu: Optional[NLU], registry: HandlerRegistry, intent_threshold: float = 0.0):
        if nlu is None:
            raise ConfigurationError("Dispatcher requires an NLU client")
        self.nlu = nlu
        self.registry = registry
        self.intent_threshold = intent_threshold

    def select(self, result: ClassificationResult) -> Optional[IntentScore]:
        top = result.top_intent()
        if top is not None and top.score < self.intent_threshold:
            logger.info("top intent %s (%.2f) below threshold %.2f", top.name, top.score, self.intent_threshold)
            return None
        return top

    async def dispatch(self, utterance: str, context: ConversationContext) -> None:
        try:
            result = await self.nlu.classify(utterance)
        except ClassificationFault as e:
            logger.error("classification failed for conversation %s: %s", context.conversation_id, e)
            await self._publish(context, NLUFault(
                conversation_id=context.conversation_id, error=str(e), original_text=utterance,
            ))
            result = ClassificationResult.empty(utterance)

        top = self.select(result)
        handler = self.registry.resolve(top.name if top else None)
        handler_name = getattr(handler, "__name__", str(handler))
        logger.info(
            "conversation %s: intent=%s -> %s",
            context.conversation_id, top.name if top else None, handler_name,
        )
        await self._publish(context, NLUIntent(
            conversation_id=context.conversation_id,
            intent=top.name if top else None,
            confidence=top.score if top else 0.0,
            handler=handler_name,
            original_text=utterance,
        ))

        try:
            await handler(context, result)
        finally:
            # Unless a form took over the next turn, the conversation awaits the next utterance.
            context.wait()

    async def _publish(self, context: ConversationContext, event) -> None:
        if context.bus is None:
            return
        if context.trace is not None:
            same_trace(context.trace, event)
        await context.bus.publish(event.topic, event.dict())
