"""
Multi-turn form that collects which virtual machine to start or stop.

States: collecting -> completed | canceled

The form owns the conversation's next turn while collecting; the
conversation manager forwards each utterance to `handle` until the form
resolves, then hands `result()` to the continuation registered with it.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from ..errors import ResolutionFailure
from ..nlu.types import EntityMatch
from ..resolver import Strategy, ordinal_index, resolve_entity

logger = logging.getLogger("vm_form")

CANCEL_WORDS = {"cancel", "quit", "exit", "never mind", "nevermind"}


class FormStatus(Enum):
    COLLECTING = "collecting"
    COMPLETED = "completed"
    CANCELED = "canceled"


class Operation(Enum):
    START = "Start"
    STOP = "Stop"

    @property
    def verb(self) -> str:
        return self.value.lower()


@dataclass(frozen=True, slots=True)
class SubFlowResult:
    status: FormStatus
    operation: Operation
    selected_name: Optional[str] = None

    @property
    def completed(self) -> bool:
        return self.status is FormStatus.COMPLETED

    @property
    def canceled(self) -> bool:
        return self.status is FormStatus.CANCELED


@dataclass(frozen=True, slots=True)
class VmFormSeed:
    available_names: Tuple[str, ...]
    operation: Operation
    prefill: Tuple[EntityMatch, ...] = field(default_factory=tuple)


class VmForm:
    def __init__(self, seed: VmFormSeed):
        self.seed = seed
        self.status = FormStatus.COLLECTING
        self.selected_name: Optional[str] = None

    @property
    def operation(self) -> Operation:
        return self.seed.operation

    def prompt(self) -> str:
        listing = "".join(f"\n{i}. {name}" for i, name in enumerate(self.seed.available_names, start=1))
        return f"Which virtual machine do you want to {self.operation.verb}?{listing}"

    async def start(self, context) -> None:
        name = self._from_prefill()
        if name:
            logger.info("form: prefilled %s for %s", name, self.operation.verb)
            self._complete(name)
            return
        await context.post_reply(self.prompt())

    async def handle(self, context, text: str) -> None:
        if self.status is not FormStatus.COLLECTING:
            raise RuntimeError(f"form already {self.status.value}")

        answer = text.strip()
        if answer.lower() in CANCEL_WORDS:
            logger.info("form: canceled by user")
            self.status = FormStatus.CANCELED
            return

        name = self._match(answer)
        if name:
            self._complete(name)
            return
        await context.post_reply(f'"{answer}" is not one of your virtual machines. {self.prompt()}')

    def result(self) -> SubFlowResult:
        if self.status is FormStatus.COLLECTING:
            raise RuntimeError("form is still collecting")
        return SubFlowResult(self.status, self.operation, self.selected_name)

    def _complete(self, name: str) -> None:
        self.selected_name = name
        self.status = FormStatus.COMPLETED

    def _by_name(self, text: str) -> Optional[str]:
        for name in self.seed.available_names:
            if name.lower() == text.lower():
                return name
        return None

    def _match(self, text: str) -> Optional[str]:
        names = self.seed.available_names
        exact = self._by_name(text)
        if exact:
            return exact
        if text.isdecimal():
            index = int(text) - 1
            return names[index] if 0 <= index < len(names) else None
        for word in re.findall(r"[\w.-]+", text):
            index = ordinal_index(word)
            if index is not None:
                return names[index] if index < len(names) else None
        return None

    def _from_prefill(self) -> Optional[str]:
        try:
            value = resolve_entity(self.seed.prefill, Strategy.ORDINAL, self.seed.available_names)
        except ResolutionFailure as e:
            logger.info("form: ignoring prefill: %s", e)
            return None
        return self._by_name(value) if value else None
