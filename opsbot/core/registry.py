from types import MappingProxyType
from typing import Awaitable, Callable, Iterable, Iterator, Mapping, Optional, Tuple


IntentHandler = Callable[..., Awaitable[None]]   # (context, ClassificationResult) -> None

FALLBACK_INTENT = ""


class HandlerRegistry(Mapping[str, IntentHandler]):
    """
    Immutable intent name -> handler mapping.

    Built once at start-up from explicit (name, handler) pairs. The empty
    name is the fallback and must be present.
    """

    def __init__(self, pairs: Iterable[Tuple[str, IntentHandler]]):
        handlers: dict[str, IntentHandler] = {}
        for name, handler in pairs:
            if name in handlers:
                raise ValueError(f"duplicate handler for intent '{name}'")
            handlers[name] = handler
        if FALLBACK_INTENT not in handlers:
            raise ValueError("registry needs a fallback handler registered under ''")
        self._handlers = MappingProxyType(handlers)

    def __getitem__(self, name: str) -> IntentHandler:
        return self._handlers[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    @property
    def fallback(self) -> IntentHandler:
        return self._handlers[FALLBACK_INTENT]

    def resolve(self, intent: Optional[str]) -> IntentHandler:
        """Handler for `intent`, or the fallback when there is none."""
        if intent is None:
            return self.fallback
        return self._handlers.get(intent, self.fallback)

    def intents(self) -> list[str]:
        return [name for name in self._handlers if name != FALLBACK_INTENT]

