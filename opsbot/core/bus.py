"""Simple async pub/sub event bus"""

from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List
import asyncio
import logging

Subscriber = Callable[[Dict[str, Any]], Awaitable[None]]

class Bus:
    def __init__(self):
        self._subs: Dict[str, List[Subscriber]] = defaultdict(list)
        self._log = logging.getLogger("bus")

    def subscribe(self, topic: str, fn: Subscriber):
        self._subs[topic].append(fn)
        subscriber_name = getattr(fn, "__name__", str(fn))
        self._log.debug("subscribe: %s -> %s (total subscribers: %d)", topic, subscriber_name, len(self._subs[topic]))

    def unsubscribe(self, topic: str, fn: Subscriber):
        subs = self._subs.get(topic, [])
        if fn in subs:
            subs.remove(fn)

    async def publish(self, topic: str, payload: Dict[str, Any]):
        subscribers = list(self._subs.get(topic, []))
        self._log.debug("publish: %s -> %d subscribers", topic, len(subscribers))
        if not subscribers:
            return
        scheduled = []
        for fn in subscribers:
            try:
                scheduled.append((fn, asyncio.create_task(fn(payload))))
            except Exception as e:
                self._log.exception("error scheduling subscriber for %s: %s", topic, e)

        # Subscriber faults are contained to the subscriber; the publisher keeps going.
        results = await asyncio.gather(*(task for _, task in scheduled), return_exceptions=True)
        for (fn, _), result in zip(scheduled, results):
            if isinstance(result, Exception):
                self._log.error(
                    "publish: subscriber %s on %s raised: %s",
                    getattr(fn, "__name__", str(fn)), topic, result, exc_info=result,
                )

    def clear(self):
        self._subs.clear()
