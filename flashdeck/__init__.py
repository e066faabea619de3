"""Flashdeck - term/definition flashcard decks over a DuckDB store."""

from .models import Card, Deck, DeckDraft, DraftCard
from .db import DuckDBPersistenceClient, PersistenceClient
from .identity import IdentitySession
from .repository import DeckRepository
from .results import CopyResult, CreateResult, ListResult, LoadResult

__all__ = [
    "Card",
    "Deck",
    "DeckDraft",
    "DraftCard",
    "DuckDBPersistenceClient",
    "PersistenceClient",
    "IdentitySession",
    "DeckRepository",
    "CopyResult",
    "CreateResult",
    "ListResult",
    "LoadResult",
]
