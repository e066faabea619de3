import pytest
from unittest.mock import patch

from flashdeck.exceptions import DeckNotFoundError, StoreError
from flashdeck.loaders import DeckPage, PageNotFoundError, load_deck_page


@pytest.mark.asyncio
async def test_load_deck_page_returns_deck_and_ordered_cards(repository, seed_deck):
    deck_id = await seed_deck(
        name="Capitals", cards=[(2, "Spain", "Madrid"), (1, "France", "Paris")]
    )

    page = await load_deck_page(repository, deck_id)

    assert isinstance(page, DeckPage)
    assert page.deck_id == deck_id
    assert page.deck.name == "Capitals"
    assert [c.term for c in page.cards] == ["France", "Spain"]


@pytest.mark.asyncio
async def test_load_deck_page_with_empty_deck(repository, seed_deck):
    deck_id = await seed_deck(name="Empty")
    page = await load_deck_page(repository, deck_id)
    assert page.cards == []


@pytest.mark.asyncio
@pytest.mark.parametrize("deck_id", ["", None])
async def test_blank_id_is_not_found(repository, deck_id):
    with pytest.raises(PageNotFoundError) as exc_info:
        await load_deck_page(repository, deck_id)
    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
async def test_unknown_deck_is_not_found(repository):
    with pytest.raises(PageNotFoundError) as exc_info:
        await load_deck_page(repository, "no-such-deck")
    assert isinstance(exc_info.value.cause, DeckNotFoundError)


@pytest.mark.asyncio
async def test_card_fetch_failure_is_not_found(repository, client, seed_deck):
    deck_id = await seed_deck(cards=[(1, "a", "b")])
    failure = StoreError("cards unavailable")

    with patch.object(client, "fetch_many", side_effect=failure):
        with pytest.raises(PageNotFoundError) as exc_info:
            await load_deck_page(repository, deck_id)

    assert exc_info.value.cause is failure
