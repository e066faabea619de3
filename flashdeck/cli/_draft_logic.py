"""
Reads a deck definition file into a `DeckDraft`.

File layout::

    name: Spanish basics
    description: Greetings and numbers
    public: true
    cards:
      - term: hola
        definition: hello
"""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from flashdeck.models import DeckDraft, DraftCard

logger = logging.getLogger(__name__)


class DeckFileError(Exception):
    """Raised when a deck definition file cannot be turned into a draft."""

    pass


def _text(mapping: dict, key: str):
    # An empty YAML value (`name:`) loads as None.
    value = mapping.get(key)
    return "" if value is None else value


def load_draft_from_yaml(path: Path) -> DeckDraft:
    """
    Parse a deck definition file into a draft ready for submission.

    Raises:
        DeckFileError: If the file is unreadable, is not valid YAML or does
            not have the expected shape.
    """
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise DeckFileError(f"Cannot read {path}: {e}") from e
    except yaml.YAMLError as e:
        raise DeckFileError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(raw, dict):
        raise DeckFileError(f"{path.name}: expected a mapping at the top level.")
    raw_cards = raw.get("cards") or []
    if not isinstance(raw_cards, list) or not all(
        isinstance(c, dict) for c in raw_cards
    ):
        raise DeckFileError(f"{path.name}: 'cards' must be a list of mappings.")

    try:
        draft = DeckDraft(
            name=_text(raw, "name"),
            description=_text(raw, "description"),
            is_public=raw.get("public", True),
            cards=[
                DraftCard(term=_text(c, "term"), definition=_text(c, "definition"))
                for c in raw_cards
            ],
        )
    except ValidationError as e:
        raise DeckFileError(f"{path.name}: {e}") from e

    logger.debug(f"Loaded draft '{draft.name}' with {len(draft.cards)} row(s).")
    return draft
