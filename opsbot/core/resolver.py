"""
Entity resolution for handler parameters.

Two strategies:
  - VALUE: the best-scoring entity's text, as extracted.
  - ORDINAL: like VALUE, but an ordinal entity ("second") is replaced with
    the matching item of a reference list the caller fetched moments earlier.
"""

from enum import Enum
from typing import Iterable, Optional, Sequence, TypeVar, Union

from .errors import ResolutionFailure
from .nlu.types import EntityMatch, ORDINAL_ENTITY

ORDINALS = ("first", "second", "third", "fourth", "fifth")

T = TypeVar("T")


class Strategy(Enum):
    VALUE = "value"
    ORDINAL = "ordinal"


def top_entity(entities: Iterable[EntityMatch]) -> Optional[EntityMatch]:
    best = None
    for entity in entities:
        if best is None or entity.score > best.score:
            best = entity
    return best


def ordinal_index(word: str) -> Optional[int]:
    """Zero-based index of an ordinal word, or None if it is not in the table."""
    try:
        return ORDINALS.index(word.strip().lower())
    except ValueError:
        return None


def resolve_entity(
    entities: Iterable[EntityMatch],
    strategy: Strategy = Strategy.VALUE,
    reference: Optional[Sequence[T]] = None,
) -> Optional[Union[str, T]]:
    """
    Resolve the best-scoring entity to a value.

    Returns None when there is no entity at all. An ordinal resolves to the
    item of `reference` itself, whatever its type.

    Raises:
        ResolutionFailure: An ordinal points past the end of `reference`
    """
    entity = top_entity(entities)
    if entity is None:
        return None
    if strategy is Strategy.VALUE or entity.type != ORDINAL_ENTITY:
        return entity.value

    index = ordinal_index(entity.value)
    if index is None:
        return entity.value
    reference = reference or ()
    if index >= len(reference):
        raise ResolutionFailure(
            f"'{entity.value}' refers to item {index + 1} but only {len(reference)} are available"
        )
    return reference[index]
