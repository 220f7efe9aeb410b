from typing import Any, Dict, Optional

from .errors import StateMissing

SUBSCRIPTION_ID = "SubscriptionId"
SUBSCRIPTION_NAME = "SubscriptionName"


class ConversationState:
    """
    Key/value store owned by exactly one conversation.

    Absent keys read as None; `require` turns absence into StateMissing for
    handlers that cannot proceed without a value.
    """

    def __init__(self):
        self._values: Dict[str, Any] = {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def clear(self, key: str) -> None:
        self._values.pop(key, None)

    def require(self, key: str) -> Any:
        value = self._values.get(key)
        if value is None:
            raise StateMissing(key)
        return value

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def snapshot(self) -> Dict[str, Any]:
        return dict(self._values)

    # typed accessors

    @property
    def subscription_id(self) -> Optional[str]:
        return self.get(SUBSCRIPTION_ID)

    @property
    def subscription_name(self) -> Optional[str]:
        return self.get(SUBSCRIPTION_NAME)

    def use_subscription(self, subscription_id: str, display_name: str) -> None:
        self.set(SUBSCRIPTION_ID, subscription_id)
        self.set(SUBSCRIPTION_NAME, display_name)
