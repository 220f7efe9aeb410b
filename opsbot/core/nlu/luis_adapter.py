"""
Remote NLU adapter backed by a LUIS application.

Queries the prediction endpoint and normalizes the payload into a
ClassificationResult. Maintains the same interface as RulesNLU for
drop-in replacement.

Service API Expected:
    GET {endpoint}/luis/v2.0/apps/{app_id}?subscription-key=...&q=...&verbose=true

    Response:
        {
          "query": "use the second one",
          "topScoringIntent": {"intent": "UseSubscription", "score": 0.93},
          "intents": [{"intent": "UseSubscription", "score": 0.93}, ...],
          "entities": [{"entity": "second", "type": "builtin.ordinal", ...}]
        }
"""

import logging
from typing import Any

import httpx

from ..errors import ClassificationFault, ConfigurationError
from .types import ClassificationResult, EntityMatch, IntentScore

logger = logging.getLogger("luis")


def parse_luis_response(payload: Any, query: str = "") -> ClassificationResult:
    """
    Normalize a LUIS v2 prediction payload.

    Service order is preserved for both intents and entities. Prebuilt
    entities often carry no score; those count as 0.0.

    Raises:
        ClassificationFault: If the payload does not have the expected shape
    """
    if not isinstance(payload, dict):
        raise ClassificationFault(f"unexpected LUIS payload type: {type(payload).__name__}")

    raw_intents = payload.get("intents")
    if raw_intents is None:
        top = payload.get("topScoringIntent")
        raw_intents = [top] if top else []
    raw_entities = payload.get("entities") or []
    if not isinstance(raw_intents, list) or not isinstance(raw_entities, list):
        raise ClassificationFault("LUIS payload has malformed intents/entities")

    try:
        intents = tuple(
            IntentScore(str(i["intent"]), float(i.get("score") or 0.0)) for i in raw_intents
        )
        entities = tuple(
            EntityMatch(str(e["type"]), str(e["entity"]), float(e.get("score") or 0.0))
            for e in raw_entities
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ClassificationFault(f"LUIS payload could not be parsed: {e}") from e

    return ClassificationResult(query=str(payload.get("query") or query), intents=intents, entities=entities)


class LuisAdapter:
    """Classifies utterances against a LUIS application."""

    def __init__(self, endpoint: str, app_id: str | None, api_key: str | None, timeout: float = 10.0):
        if not app_id or not api_key:
            raise ConfigurationError("LUIS_APP_ID and LUIS_API_KEY must be set to use the LUIS adapter")
        self.endpoint = endpoint.rstrip("/")
        self.app_id = app_id
        self.api_key = api_key
        self.timeout = timeout

    @property
    def url(self) -> str:
        return f"{self.endpoint}/luis/v2.0/apps/{self.app_id}"

    async def classify(self, text: str) -> ClassificationResult:
        params = {"subscription-key": self.api_key, "q": text, "verbose": "true"}
        logger.info("Querying LUIS app %s (%d chars)", self.app_id, len(text))

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(self.url, params=params)
                response.raise_for_status()
                payload = response.json()
            except httpx.TimeoutException as e:
                logger.error("LUIS request timed out after %.1fs", self.timeout)
                raise ClassificationFault(f"LUIS request timed out after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                logger.error("LUIS service error: %s %s", e.response.status_code, e.response.text)
                raise ClassificationFault(f"LUIS returned HTTP {e.response.status_code}") from e
            except httpx.RequestError as e:
                logger.error("LUIS network error: %s", e)
                raise ClassificationFault(f"LUIS network error: {e}") from e
            except ValueError as e:
                logger.error("LUIS returned invalid JSON: %s", e)
                raise ClassificationFault("LUIS returned invalid JSON") from e

        result = parse_luis_response(payload, query=text)
        logger.debug("LUIS intents: %s", result.intent_names())
        return result
