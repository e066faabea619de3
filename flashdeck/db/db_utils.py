"""
Utility functions for data marshalling between Pydantic models and store records.
This module keeps row-shape details out of the deck repository.
"""

from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from ..models import Card, Deck, DraftCard
from ..exceptions import MarshallingError


def db_row_to_deck(row_dict: Dict[str, Any]) -> Deck:
    """
    Create a Deck model from a `decks` row.

    Raises:
        MarshallingError: If the row cannot be validated into a Deck.
    """
    try:
        return Deck(**row_dict)
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse deck from DB row: {row_dict}. Error: {e}",
            original_exception=e,
        ) from e


def db_rows_to_cards(rows: Sequence[Dict[str, Any]]) -> List[Card]:
    """
    Create Card models from `cards` rows, keeping their order.

    Raises:
        MarshallingError: If any row cannot be validated into a Card.
    """
    try:
        return [Card(**row) for row in rows]
    except ValidationError as e:
        raise MarshallingError(
            f"Failed to parse cards from DB rows. Error: {e}",
            original_exception=e,
        ) from e


def deck_insert_record(
    user_id: str,
    name: str,
    description: Optional[str],
    is_public: bool,
) -> Dict[str, Any]:
    """Build a `decks` record; `id` and `created_at` are left to the store."""
    return {
        "user_id": user_id,
        "name": name,
        "description": description,
        "is_public": is_public,
    }


def copied_card_records(
    cards: Sequence[Card], deck_id: str
) -> List[Dict[str, Any]]:
    """
    Build `cards` records that reproduce `cards` under another deck.

    Positions are reused verbatim so the copy keeps the source order.
    """
    return [
        {
            "deck_id": deck_id,
            "term": card.term,
            "definition": card.definition,
            "position": card.position,
        }
        for card in cards
    ]


def draft_card_records(
    cards: Sequence[DraftCard], deck_id: str
) -> List[Dict[str, Any]]:
    """Build `cards` records for draft rows, numbered from 1 in draft order."""
    return [
        {
            "deck_id": deck_id,
            "term": card.term.strip(),
            "definition": card.definition.strip(),
            "position": position,
        }
        for position, card in enumerate(cards, start=1)
    ]
