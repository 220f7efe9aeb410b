import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Dict, List, Optional

from .bus import Bus
from .context import ConversationContext, TurnState
from .contracts import UserUtterance
from .dispatcher import Dispatcher

SORRY = "Sorry, something went wrong. Please try again."


class ConversationManager:
    """
    Owns one ConversationContext per conversation id.

    Listens on 'user.utterance'. Turns for the same conversation run one at
    a time; different conversations never share state or locks.

    A conversation lives until it is ended or, when `idle_timeout_s` is
    set, until it has seen no turn for that long. Idle conversations are
    evicted when the next turn for any conversation arrives.
    """

    def __init__(self, bus: Bus, dispatcher: Dispatcher, idle_timeout_s: float = 0.0):
        self.bus = bus
        self.dispatcher = dispatcher
        self.idle_timeout_s = idle_timeout_s
        self._contexts: Dict[str, ConversationContext] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._pending: Dict[str, int] = {}     # turns holding or waiting for the lock
        self._last_active: Dict[str, float] = {}
        self.log = logging.getLogger("conversation")

    async def start(self):
        self.bus.subscribe("user.utterance", self._on_utterance)

    async def stop(self):
        self.bus.unsubscribe("user.utterance", self._on_utterance)

    def context(self, conversation_id: str) -> ConversationContext:
        ctx = self._contexts.get(conversation_id)
        if ctx is None:
            ctx = ConversationContext(conversation_id, bus=self.bus)
            self._contexts[conversation_id] = ctx
            self._last_active[conversation_id] = time.monotonic()
            self.log.info("conversation %s: started", conversation_id)
        return ctx

    def conversations(self) -> List[str]:
        return list(self._contexts)

    @asynccontextmanager
    async def _exclusive(self, conversation_id: str):
        self._pending[conversation_id] = self._pending.get(conversation_id, 0) + 1
        lock = self._locks.setdefault(conversation_id, asyncio.Lock())
        try:
            async with lock:
                yield
        finally:
            self._pending[conversation_id] -= 1
            if not self._pending[conversation_id]:
                del self._pending[conversation_id]
                if conversation_id not in self._contexts:
                    self._locks.pop(conversation_id, None)

    async def end(self, conversation_id: str) -> bool:
        """Forget a conversation and everything it stored, once its current turn is done."""
        async with self._exclusive(conversation_id):
            return self._forget(conversation_id)

    def evict_idle(self, now: Optional[float] = None) -> List[str]:
        """End conversations idle for longer than `idle_timeout_s`; busy ones are skipped."""
        if self.idle_timeout_s <= 0:
            return []
        now = time.monotonic() if now is None else now
        evicted = [
            cid for cid, seen in self._last_active.items()
            if now - seen > self.idle_timeout_s and cid not in self._pending
        ]
        for cid in evicted:
            self._forget(cid)
            self._locks.pop(cid, None)
        if evicted:
            self.log.info("evicted %d idle conversation(s)", len(evicted))
        return evicted

    def _forget(self, conversation_id: str) -> bool:
        self._last_active.pop(conversation_id, None)
        ended = self._contexts.pop(conversation_id, None) is not None
        if ended:
            self.log.info("conversation %s: ended", conversation_id)
        return ended

    async def handle_utterance(self, conversation_id: str, text: str, trace=None) -> List[str]:
        """Process one turn to completion and return the replies it produced."""
        self.evict_idle()
        async with self._exclusive(conversation_id):
            ctx = self.context(conversation_id)
            ctx.trace = trace
            try:
                if ctx.turn_state is TurnState.FORM:
                    self.log.info("conversation %s: forwarding to active form", conversation_id)
                    await ctx.forward(text)
                else:
                    await self.dispatcher.dispatch(text, ctx)
            except Exception as e:
                self.log.exception("conversation %s: turn failed: %s", conversation_id, e)
                ctx.abandon_form()
                await ctx.post_reply(SORRY)
            finally:
                ctx.trace = None
                self._last_active[conversation_id] = time.monotonic()
            return ctx.drain_replies()

    async def _on_utterance(self, payload: dict):
        try:
            event = UserUtterance(**payload)
        except Exception:
            self.log.warning("malformed user.utterance event, skipping")
            return

        if not event.text.strip():
            self.log.debug("empty utterance, skipping")
            return
        await self.handle_utterance(event.conversation_id, event.text, trace=event)
