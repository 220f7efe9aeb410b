from dataclasses import dataclass, asdict, field
from typing import Any, Optional
import time
import uuid

# Base Event
@dataclass(slots=True)
class Event:
    topic: str
    ts_ms: int = field(default_factory=lambda: int(time.time() * 1000))
    corr_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def dict(self) -> dict[str, Any]:
        return asdict(self)

# Conversation Events

@dataclass(slots=True)
class UserUtterance(Event):
    topic: str = "user.utterance"
    conversation_id: str = ""
    text: str = ""

    def __post_init__(self) -> None:
        if not self.conversation_id:
            raise ValueError("UserUtterance requires a conversation_id")

@dataclass(slots=True)
class NLUIntent(Event):
    topic: str = "nlu.intent"
    conversation_id: str = ""
    intent: Optional[str] = None   # None when nothing was classified
    confidence: float = 0.0
    handler: str = ""              # name of the handler that ran
    original_text: str = ""

@dataclass(slots=True)
class NLUFault(Event):
    topic: str = "nlu.fault"
    conversation_id: str = ""
    error: str = ""
    original_text: str = ""

@dataclass(slots=True)
class BotReply(Event):
    topic: str = "bot.reply"
    conversation_id: str = ""
    text: str = ""

# Debugging helper
def same_trace(parent: Event, child: Event) -> Event:
    """Copy corr_id so downstream events stay in the same trace."""
    child.corr_id = parent.corr_id
    return child
