"""
Result envelopes returned by the deck repository.

Every public repository operation reports failure by value: the original
exception is attached to the envelope instead of being raised, so callers
decide how to present it.
"""

from dataclasses import dataclass
from typing import Generic, List, Optional, TypeVar

from .models import Card, Deck

T = TypeVar("T")


@dataclass(frozen=True)
class StepResult(Generic[T]):
    """Outcome of a single persistence call."""

    value: Optional[T] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class LoadResult:
    deck: Optional[Deck] = None
    cards: Optional[List[Card]] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CopyResult:
    id: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class CreateResult:
    id: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class ListResult:
    decks: Optional[List[Deck]] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
