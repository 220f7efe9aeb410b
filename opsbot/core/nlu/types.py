from dataclasses import dataclass, field
from typing import Optional, Tuple

ORDINAL_ENTITY = "builtin.ordinal"


@dataclass(frozen=True, slots=True)
class IntentScore:
    name: str
    score: float = 0.0


@dataclass(frozen=True, slots=True)
class EntityMatch:
    type: str
    value: str
    score: float = 0.0


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """
    Normalized classifier output.

    `intents` keeps the order the service supplied (descending score by
    contract); nothing here re-sorts it. Either sequence may be empty.
    """
    query: str = ""
    intents: Tuple[IntentScore, ...] = field(default_factory=tuple)
    entities: Tuple[EntityMatch, ...] = field(default_factory=tuple)

    @classmethod
    def empty(cls, query: str = "") -> "ClassificationResult":
        return cls(query=query)

    def top_intent(self) -> Optional[IntentScore]:
        return select_top_intent(self.intents)

    def intent_names(self) -> list[str]:
        return [i.name for i in self.intents]


def select_top_intent(intents) -> Optional[IntentScore]:
    """Strictly maximal score wins; ties keep the first in supplied order."""
    best = None
    for intent in intents:
        if best is None or intent.score > best.score:
            best = intent
    return best
