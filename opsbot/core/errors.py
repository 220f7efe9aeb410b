"""Fault taxonomy shared by the dispatcher, adapters and handlers."""


class OpsBotError(Exception):
    """Base class for every fault raised by opsbot."""


class ConfigurationError(OpsBotError):
    """Required configuration (credentials, model id, token) is missing."""


class ClassificationFault(OpsBotError):
    """The NLU call failed or returned data we could not parse."""


class ResolutionFailure(OpsBotError):
    """An entity could not be resolved (e.g. ordinal out of range)."""


class StateMissing(OpsBotError):
    """Conversation state a handler depends on has not been established."""

    def __init__(self, key: str):
        super().__init__(f"conversation state '{key}' is not set")
        self.key = key


class RemoteCallFault(OpsBotError):
    """A cloud management call failed."""

    def __init__(self, operation: str, message: str):
        super().__init__(message)
        self.operation = operation
