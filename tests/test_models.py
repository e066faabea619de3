import pytest
from datetime import datetime, timezone

from pydantic import ValidationError

from flashdeck.exceptions import DraftValidationError, UnauthenticatedError
from flashdeck.identity import IdentitySession
from flashdeck.models import (
    DRAFT_BLANK_CARDS,
    Card,
    Deck,
    DeckDraft,
    DraftCard,
)


# --- Deck / Card Model Tests ---

class TestDeckModel:
    def test_deck_from_row_defaults(self):
        """A row without description or visibility gets the model defaults."""
        deck = Deck(
            id="d1",
            user_id="u1",
            name="Spanish",
            created_at="2024-03-01T10:00:00.000000+00:00",
        )
        assert deck.description is None
        assert deck.is_public is False
        assert deck.created_at == datetime(2024, 3, 1, 10, tzinfo=timezone.utc)

    def test_deck_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            Deck(
                id="d1",
                user_id="u1",
                name="Spanish",
                created_at=datetime.now(timezone.utc),
                colour="red",
            )

    def test_deck_requires_non_empty_id(self):
        with pytest.raises(ValidationError):
            Deck(id="", user_id="u1", name="n", created_at=datetime.now(timezone.utc))


class TestCardModel:
    def test_card_creation(self):
        card = Card(id="c1", deck_id="d1", term="hola", definition="hello", position=5)
        assert card.position == 5

    def test_card_position_must_be_integer(self):
        with pytest.raises(ValidationError):
            Card(id="c1", deck_id="d1", term="t", definition="d", position="first")

    def test_card_assignment_is_validated(self):
        card = Card(id="c1", deck_id="d1", term="t", definition="d", position=1)
        with pytest.raises(ValidationError):
            card.position = "later"


# --- Draft Tests ---

class TestDeckDraft:
    def test_new_draft_has_blank_rows(self):
        draft = DeckDraft()
        assert draft.name == ""
        assert draft.description == ""
        assert draft.is_public is True
        assert len(draft.cards) == DRAFT_BLANK_CARDS
        assert draft.filled_cards() == []

    def test_drafts_do_not_share_rows(self):
        first, second = DeckDraft(), DeckDraft()
        first.add_card("a", "b")
        assert len(second.cards) == DRAFT_BLANK_CARDS

    def test_name_and_description_are_stripped(self):
        draft = DeckDraft(name="  Spanish  ", description="\twords\n")
        assert draft.name == "Spanish"
        assert draft.description == "words"
        draft.name = "  French "
        assert draft.name == "French"

    def test_add_and_remove_rows(self):
        draft = DeckDraft()
        added = draft.add_card("hola", "hello")
        assert draft.cards[-1] is added
        assert len(draft.cards) == DRAFT_BLANK_CARDS + 1

        removed = draft.remove_card(0)
        assert removed == DraftCard()
        assert len(draft.cards) == DRAFT_BLANK_CARDS

    def test_remove_missing_row_raises(self):
        draft = DeckDraft(cards=[])
        with pytest.raises(IndexError):
            draft.remove_card(0)

    def test_filled_cards_keeps_order_and_skips_partial_rows(self):
        draft = DeckDraft(
            cards=[
                DraftCard(term="one", definition="1"),
                DraftCard(term="half", definition=""),
                DraftCard(term="   ", definition="blank term"),
                DraftCard(term="two", definition="2"),
            ]
        )
        assert [c.term for c in draft.filled_cards()] == ["one", "two"]

    @pytest.mark.parametrize(
        "name, cards, message",
        [
            ("", [DraftCard(term="a", definition="b")], "name"),
            ("   ", [DraftCard(term="a", definition="b")], "name"),
            ("Deck", [DraftCard(term="a", definition="")], "card"),
            ("Deck", [], "card"),
        ],
    )
    def test_validate_for_submit_rejects(self, name, cards, message):
        draft = DeckDraft(name=name, cards=cards)
        with pytest.raises(DraftValidationError, match=message):
            draft.validate_for_submit()

    def test_validate_for_submit_accepts_filled_draft(self):
        draft = DeckDraft(name="Deck")
        draft.cards[1].term = "a"
        draft.cards[1].definition = "b"
        draft.validate_for_submit()

    def test_reset_returns_to_initial_state(self):
        draft = DeckDraft(name="Deck", description="d", is_public=False)
        draft.add_card("a", "b")
        draft.reset()
        assert draft == DeckDraft()


# --- Identity Tests ---

class TestIdentitySession:
    def test_signed_out_session(self):
        session = IdentitySession()
        assert session.is_authenticated() is False
        with pytest.raises(UnauthenticatedError):
            session.current()

    def test_sign_in_and_out(self):
        session = IdentitySession("u1")
        assert session.current() == "u1"
        session.sign_in("u2")
        assert session.current() == "u2"
        session.sign_out()
        assert session.is_authenticated() is False

    def test_empty_identity_counts_as_signed_out(self):
        session = IdentitySession("")
        assert session.is_authenticated() is False
        with pytest.raises(UnauthenticatedError):
            session.current()
