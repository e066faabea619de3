"""
Pydantic models for decks, cards and the deck editing draft.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .exceptions import DraftValidationError

COPY_NAME_PREFIX = "Copy of "
DRAFT_BLANK_CARDS = 2


class Deck(BaseModel):
    """
    A deck row as stored in the `decks` collection.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: str = Field(
        ...,
        min_length=1,
        description="Store-assigned unique identifier.",
    )
    user_id: str = Field(
        ...,
        description="Identity that owns the deck.",
    )
    name: str = Field(..., description="Display name of the deck.")
    description: Optional[str] = Field(
        default=None,
        description="Optional free-text description.",
    )
    is_public: bool = Field(
        default=False,
        description="Whether other identities may view the deck.",
    )
    created_at: datetime = Field(
        ...,
        description="UTC timestamp assigned by the store on insert.",
    )


class Card(BaseModel):
    """
    A card row as stored in the `cards` collection.

    `position` orders cards within one deck; it is unique per deck but not
    necessarily gapless or zero-based.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: str = Field(
        ...,
        min_length=1,
        description="Store-assigned unique identifier.",
    )
    deck_id: str = Field(..., description="Identifier of the parent deck.")
    term: str = Field(..., description="Prompt side of the card.")
    definition: str = Field(..., description="Answer side of the card.")
    position: int = Field(
        ...,
        description="Display order within the deck (ascending).",
    )


class DraftCard(BaseModel):
    """One editable term/definition row of a deck draft."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    term: str = ""
    definition: str = ""

    @property
    def is_filled(self) -> bool:
        return bool(self.term.strip()) and bool(self.definition.strip())


def _blank_cards() -> List[DraftCard]:
    return [DraftCard() for _ in range(DRAFT_BLANK_CARDS)]


class DeckDraft(BaseModel):
    """
    Editing state for a deck that has not been submitted yet.

    A draft is owned by the editing session that created it and is returned
    to its initial state with `reset()` once the deck has been saved.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    name: str = Field(default="", description="Deck name being edited.")
    description: str = Field(
        default="", description="Deck description being edited."
    )
    is_public: bool = Field(
        default=True, description="Visibility the deck will be created with."
    )
    cards: List[DraftCard] = Field(
        default_factory=_blank_cards,
        description="Rows in display order.",
    )

    @field_validator("name", "description")
    @classmethod
    def strip_surrounding_whitespace(cls, v: str) -> str:
        return v.strip()

    def add_card(self, term: str = "", definition: str = "") -> DraftCard:
        """Append a row to the draft and return it."""
        card = DraftCard(term=term, definition=definition)
        self.cards.append(card)
        return card

    def remove_card(self, index: int) -> DraftCard:
        """
        Remove the row at `index`.

        Raises:
            IndexError: If `index` does not address an existing row.
        """
        return self.cards.pop(index)

    def filled_cards(self) -> List[DraftCard]:
        """Rows with both a term and a definition, in draft order."""
        return [card for card in self.cards if card.is_filled]

    def validate_for_submit(self) -> None:
        """
        Check that the draft can be turned into a deck.

        Raises:
            DraftValidationError: If the name is blank or no row is filled in.
        """
        if not self.name:
            raise DraftValidationError("Deck name is required.")
        if not self.filled_cards():
            raise DraftValidationError(
                "At least one card needs both a term and a definition."
            )

    def reset(self) -> None:
        """Return the draft to the state of a freshly opened form."""
        self.name = ""
        self.description = ""
        self.is_public = True
        self.cards = _blank_cards()
