"""
Page-level loaders built on the deck repository.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .models import Card, Deck
from .repository import DeckRepository

logger = logging.getLogger(__name__)


class PageNotFoundError(Exception):
    """Raised by a loader when the requested page has nothing to show."""

    status_code = 404

    def __init__(self, message: str = "Not Found", cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class DeckPage(BaseModel):
    """Data needed to render a deck page."""

    model_config = ConfigDict(extra="forbid")

    deck_id: str
    deck: Deck
    cards: List[Card]


async def load_deck_page(repository: DeckRepository, deck_id: str) -> DeckPage:
    """
    Load the deck page for `deck_id`.

    Raises:
        PageNotFoundError: If the id is blank or the deck cannot be loaded for
            any reason; the underlying error is kept on `cause`.
    """
    result = await repository.load(deck_id)
    if not deck_id or result.deck is None or result.cards is None:
        logger.info(f"Deck page {deck_id!r} not available: {result.error}")
        raise PageNotFoundError(cause=result.error)
    return DeckPage(deck_id=deck_id, deck=result.deck, cards=result.cards)
