import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from .bus import Bus
from .contracts import BotReply, Event, same_trace
from .forms.vm_form import FormStatus, SubFlowResult, VmForm
from .state import ConversationState

logger = logging.getLogger("conversation")


class TurnState(Enum):
    AWAITING = "utterance"   # next utterance goes to the dispatcher
    FORM = "form"            # next utterance goes to the active form


Continuation = Callable[["ConversationContext", SubFlowResult], Awaitable[None]]


class ConversationContext:
    """
    Everything a handler may touch for one conversation: its state, the
    reply channel, and the slot a form occupies while it owns the next turn.
    """

    def __init__(self, conversation_id: str, bus: Optional[Bus] = None):
        self.conversation_id = conversation_id
        self.bus = bus
        self.state = ConversationState()
        self.turn_state = TurnState.AWAITING
        self.trace: Optional[Event] = None   # inbound event of the current turn
        self._replies: List[str] = []
        self._form: Optional[VmForm] = None
        self._continuation: Optional[Continuation] = None

    @property
    def in_form(self) -> bool:
        return self._form is not None

    async def post_reply(self, text: str) -> None:
        self._replies.append(text)
        if self.bus is None:
            return
        reply = BotReply(conversation_id=self.conversation_id, text=text)
        if self.trace is not None:
            same_trace(self.trace, reply)
        await self.bus.publish(reply.topic, reply.dict())

    def drain_replies(self) -> List[str]:
        replies, self._replies = self._replies, []
        return replies

    def wait(self) -> None:
        """Re-arm: the next utterance goes back to the dispatcher."""
        if self._form is None:
            self.turn_state = TurnState.AWAITING

    async def call(self, form: VmForm, continuation: Continuation) -> None:
        """Hand the next turns to `form`; run `continuation` once it resolves."""
        if self._form is not None:
            raise RuntimeError("a form is already active in this conversation")
        self._form = form
        self._continuation = continuation
        self.turn_state = TurnState.FORM
        await form.start(self)
        await self._resume_if_resolved()

    async def forward(self, text: str) -> None:
        if self._form is None:
            raise RuntimeError("no active form to forward to")
        await self._form.handle(self, text)
        await self._resume_if_resolved()

    def abandon_form(self) -> None:
        if self._form is not None:
            logger.warning("conversation %s: abandoning active form", self.conversation_id)
        self._form = None
        self._continuation = None
        self.turn_state = TurnState.AWAITING

    async def _resume_if_resolved(self) -> None:
        form, continuation = self._form, self._continuation
        if form is None or form.status is FormStatus.COLLECTING:
            return
        self._form = None
        self._continuation = None
        self.turn_state = TurnState.AWAITING
        await continuation(self, form.result())
