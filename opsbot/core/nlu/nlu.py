import logging
from typing import Optional, Protocol

from ..errors import ClassificationFault
from .rules import RulesNLU
from .types import ClassificationResult


class NLUAdapter(Protocol):
    async def classify(self, text: str) -> ClassificationResult: ...


class NLU:
    """
    Client used by the dispatcher to classify utterances.

    Wraps an adapter (RulesNLU or LuisAdapter) and guarantees that callers
    either get a ClassificationResult or a ClassificationFault.
    """

    def __init__(self, adapter: Optional[NLUAdapter] = None):
        self.adapter = adapter or RulesNLU()
        self.log = logging.getLogger("nlu")

    async def classify(self, text: str) -> ClassificationResult:
        text = text.strip()
        self.log.info("NLU: Classifying text: '%s'", text)
        try:
            result = await self.adapter.classify(text)
        except ClassificationFault:
            raise
        except Exception as e:
            self.log.exception("NLU: adapter %s failed: %s", type(self.adapter).__name__, e)
            raise ClassificationFault(f"classifier failed: {e}") from e

        if not isinstance(result, ClassificationResult):
            raise ClassificationFault(f"classifier returned {type(result).__name__}, expected ClassificationResult")

        top = result.top_intent()
        if top:
            self.log.info("NLU: Intent detected: %s (confidence: %.2f)", top.name, top.score)
        else:
            self.log.info("NLU: No intent detected")
        return result
