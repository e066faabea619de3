import pytest
from pathlib import Path
from typing import Awaitable, Callable, Generator, Optional, Sequence, Tuple

from flashdeck.db import DuckDBPersistenceClient
from flashdeck.identity import IdentitySession
from flashdeck.repository import DeckRepository


OWNER_ID = "user-owner"
OTHER_USER_ID = "user-other"

CardSpec = Tuple[int, str, str]
SeedDeck = Callable[..., Awaitable[str]]


# each test runs on cwd to its temp dir
@pytest.fixture(autouse=True)
def go_to_tmpdir(tmp_path: Path, monkeypatch):
    """
    Run each test from its own temporary directory so no stray `.env` file is
    picked up by the settings loader.
    """
    monkeypatch.chdir(tmp_path)
    yield


# --- Database Fixtures ---
@pytest.fixture
def db_path_memory() -> str:
    return ":memory:"


@pytest.fixture
def db_path_file(tmp_path: Path) -> Path:
    return tmp_path / "test_flashdeck.db"


@pytest.fixture(params=["memory", "file"])
def client(
    request, db_path_memory: str, db_path_file: Path
) -> Generator[DuckDBPersistenceClient, None, None]:
    """
    Provide an initialized DuckDBPersistenceClient, in-memory or file-backed,
    signed in as OWNER_ID.
    """
    db_path = db_path_memory if request.param == "memory" else db_path_file
    store = DuckDBPersistenceClient(db_path, identity=IdentitySession(OWNER_ID))
    store.initialize_schema()
    try:
        yield store
    finally:
        store.close_connection()


@pytest.fixture
def repository(client: DuckDBPersistenceClient) -> DeckRepository:
    return DeckRepository(client)


@pytest.fixture
def seed_deck(client: DuckDBPersistenceClient) -> SeedDeck:
    """
    Return a coroutine function that stores a deck with the given cards and
    returns its id. Cards are given as (position, term, definition).
    """

    async def _seed(
        name: str = "Spanish",
        cards: Sequence[CardSpec] = (),
        user_id: str = OWNER_ID,
        description: Optional[str] = "Basic words",
        is_public: bool = True,
    ) -> str:
        deck_rows = await client.insert(
            "decks",
            {
                "user_id": user_id,
                "name": name,
                "description": description,
                "is_public": is_public,
            },
        )
        deck_id = deck_rows[0]["id"]
        if cards:
            await client.insert(
                "cards",
                [
                    {
                        "deck_id": deck_id,
                        "term": term,
                        "definition": definition,
                        "position": position,
                    }
                    for position, term, definition in cards
                ],
            )
        return deck_id

    return _seed
