import re
from .types import ClassificationResult, EntityMatch, IntentScore, ORDINAL_ENTITY

_LIST_SUBS = re.compile(r"\b(list|show|what are|which are|get)\b.*\bsubscriptions\b", re.I)
_USE_SUB = re.compile(r"\b(use|select|switch to|choose|pick)\b", re.I)
_LIST_VMS = re.compile(r"\b(list|show|what are|which are|get)\b.*\b(vms|virtual machines|machines)\b", re.I)
_START_VM = re.compile(r"\b(start|boot|power on|turn on)\b", re.I)
_STOP_VM = re.compile(r"\b(stop|shut ?down|power off|turn off)\b", re.I)
_RUNBOOK = re.compile(r"\brunbook\b", re.I)

_ORDINAL = re.compile(r"\b(first|second|third|fourth|fifth|sixth|seventh|eighth|ninth|tenth)\b", re.I)
_USE_TARGET = re.compile(r"\b(?:use|select|switch to|choose|pick)\s+(?:the\s+)?(?P<name>.+?)(?:\s+subscription)?\s*$", re.I)
_VM_TARGET = re.compile(
    r"\b(?:start|boot|power on|turn on|stop|shut ?down|power off|turn off)\s+(?P<rest>.+)$", re.I
)
_RUNBOOK_TARGET = (
    re.compile(r"\brun\s+(?:the\s+)?(?P<name>[\w.-]+)\s+runbook\b", re.I),
    re.compile(r"\brunbook\s+(?:called\s+|named\s+)?(?P<name>[\w.-]+)", re.I),
)

_FILLER = {"the", "a", "an", "my", "vm", "virtual", "machine", "one", "it", "please", "now"}


def _ordinals(text: str) -> list[EntityMatch]:
    return [EntityMatch(ORDINAL_ENTITY, m.group(1).lower(), 0.95) for m in _ORDINAL.finditer(text)]


def _vm_name(text: str) -> str | None:
    m = _VM_TARGET.search(text)
    if not m:
        return None
    words = [w for w in re.findall(r"[\w.-]+", m.group("rest")) if w.lower() not in _FILLER]
    if len(words) != 1 or _ORDINAL.fullmatch(words[0]):
        return None
    return words[0]


class RulesNLU:
    """
    Offline classifier used when no LUIS model is configured.

    Every matching rule contributes an intent; the list is returned in
    descending score order, the same contract the remote service honours.
    """

    async def classify(self, text: str) -> ClassificationResult:
        t = text.strip()
        intents: list[IntentScore] = []
        entities: list[EntityMatch] = []

        if _LIST_SUBS.search(t):
            intents.append(IntentScore("ListSubscriptions", 0.95))
        if _LIST_VMS.search(t):
            intents.append(IntentScore("ListVms", 0.9))
        if _RUNBOOK.search(t):
            intents.append(IntentScore("RunRunbook", 0.9))
            for pattern in _RUNBOOK_TARGET:
                m = pattern.search(t)
                if m and m.group("name").lower() not in _FILLER:
                    entities.append(EntityMatch("Runbook", m.group("name"), 0.9))
                    break
        elif _START_VM.search(t) or _STOP_VM.search(t):
            intents.append(IntentScore("StopVm" if _STOP_VM.search(t) else "StartVm", 0.9))
            name = _vm_name(t)
            if name:
                entities.append(EntityMatch("VirtualMachine", name, 0.9))
            entities.extend(_ordinals(t))
        if _USE_SUB.search(t):
            intents.append(IntentScore("UseSubscription", 0.85))
            ordinals = _ordinals(t)
            if ordinals:
                entities.extend(ordinals)
            else:
                m = _USE_TARGET.search(t)
                if m and m.group("name").lower() not in _FILLER:
                    entities.append(EntityMatch("Subscription", m.group("name"), 0.8))

        intents.sort(key=lambda i: i.score, reverse=True)
        return ClassificationResult(query=t, intents=tuple(intents), entities=tuple(entities))
