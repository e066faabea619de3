"""
Deck-with-cards aggregate operations.

`DeckRepository` reads, copies, creates and deletes a deck together with its
cards on top of a `PersistenceClient`. The store offers no transaction that
spans calls, so multi-step writes are run as a saga: every completed write is
recorded and undone by compensating deletes when a later step fails. When
the undo itself fails the caller receives a `PartialAggregateFailure`.

No operation raises. Each store call is turned into a `StepResult` and every
public method returns an envelope from `flashdeck.results` (or, for
`delete`, the error itself / `None`).
"""

import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    TypeVar,
)

from .db import db_utils
from .db.client import PersistenceClient
from .exceptions import (
    DeckNotFoundError,
    DraftValidationError,
    MarshallingError,
    PartialAggregateFailure,
    RecordNotFoundError,
    StoreError,
    UnauthenticatedError,
)
from .models import COPY_NAME_PREFIX, Card, Deck, DeckDraft
from .results import (
    CopyResult,
    CreateResult,
    ListResult,
    LoadResult,
    StepResult,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
U = TypeVar("U")

CardRecordsFactory = Callable[[str], List[Dict[str, Any]]]

# Write step names, shared by logs and `PartialAggregateFailure.completed_steps`.
INSERT_DECKS = "insert decks"
INSERT_CARDS = "insert cards"
DELETE_DECKS = "delete decks"
DELETE_CARDS = "delete cards"


class DeckRepository:
    """
    Aggregate operations over the `decks` and `cards` collections.

    Row-level access rules are enforced by the store; the repository does
    not repeat them.
    """

    def __init__(self, client: PersistenceClient):
        self._client = client

    # --- Public operations ---

    async def load(self, deck_id: Optional[str]) -> LoadResult:
        """
        Load a deck and its cards ordered by position.

        Returns:
            LoadResult: `deck` and `cards` on success; both `None` and `error`
            set otherwise (`DeckNotFoundError` for a blank or unknown id).
        """
        deck_step = await self._fetch_deck(deck_id)
        if not deck_step.ok:
            return LoadResult(error=deck_step.error)

        cards_step = await self._fetch_cards(deck_id)
        if not cards_step.ok:
            return LoadResult(error=cards_step.error)

        logger.debug(
            f"Loaded deck {deck_id} with {len(cards_step.value)} card(s)."
        )
        return LoadResult(deck=deck_step.value, cards=cards_step.value)

    async def copy(self, deck_id: Optional[str]) -> CopyResult:
        """
        Copy a deck and its cards into a new deck owned by the current identity.

        The new deck is named "Copy of <name>" and keeps the source
        description and visibility; cards keep their term, definition and
        position. Every call creates a new deck.

        Returns:
            CopyResult: `id` of the new deck, or `error` with `id` None.
            Preconditions fail in order with `UnauthenticatedError`, then
            `DeckNotFoundError`.
        """
        identity_step = await self._resolve_identity()
        if not identity_step.ok:
            return CopyResult(error=identity_step.error)

        deck_step = await self._fetch_deck(deck_id)
        if not deck_step.ok:
            return CopyResult(error=deck_step.error)
        source: Deck = deck_step.value

        cards_step = await self._fetch_cards(deck_id)
        if not cards_step.ok:
            return CopyResult(error=cards_step.error)
        source_cards: List[Card] = cards_step.value

        saved = await self._insert_aggregate(
            db_utils.deck_insert_record(
                user_id=identity_step.value,
                name=COPY_NAME_PREFIX + source.name,
                description=source.description,
                is_public=source.is_public,
            ),
            lambda new_id: db_utils.copied_card_records(source_cards, new_id),
        )
        if saved.ok:
            logger.info(
                f"Copied deck {deck_id} to {saved.value} "
                f"({len(source_cards)} card(s))."
            )
        return CopyResult(id=saved.value, error=saved.error)

    async def create(self, draft: DeckDraft) -> CreateResult:
        """
        Create a deck owned by the current identity from an editing draft.

        Only filled-in rows are stored, numbered 1..n in draft order. The
        draft itself is left untouched; resetting it is up to its owner.
        """
        try:
            draft.validate_for_submit()
        except DraftValidationError as e:
            return CreateResult(error=e)

        identity_step = await self._resolve_identity()
        if not identity_step.ok:
            return CreateResult(error=identity_step.error)

        rows = draft.filled_cards()
        saved = await self._insert_aggregate(
            db_utils.deck_insert_record(
                user_id=identity_step.value,
                name=draft.name,
                description=draft.description or None,
                is_public=draft.is_public,
            ),
            lambda new_id: db_utils.draft_card_records(rows, new_id),
        )
        if saved.ok:
            logger.info(f"Created deck {saved.value} with {len(rows)} card(s).")
        return CreateResult(id=saved.value, error=saved.error)

    async def delete(self, deck_id: Optional[str]) -> Optional[Exception]:
        """
        Delete a deck and all of its cards.

        The card rows are removed even when no deck row matched, so leftovers
        of an earlier failed delete are cleaned up.

        Returns:
            None on success. When the deck delete fails, the store error is
            returned as-is (not wrapped) and the cards are left alone. When
            the deck is gone but its cards could not be removed, the card
            error is wrapped in a `PartialAggregateFailure` and kept on its
            `original_exception`; compare against that attribute, not the
            returned object.
        """
        if not deck_id:
            return DeckNotFoundError(deck_id)

        deck_step = await self._step(
            DELETE_DECKS, self._client.delete, "decks", {"id": deck_id}
        )
        if not deck_step.ok:
            return deck_step.error
        if not deck_step.value:
            logger.info(
                f"No deck row matched {deck_id}; removing any cards left for it."
            )

        cards_step = await self._step(
            DELETE_CARDS, self._client.delete, "cards", {"deck_id": deck_id}
        )
        if not cards_step.ok:
            logger.warning(
                f"Deck {deck_id} was deleted but its cards were not."
            )
            return PartialAggregateFailure(
                f"Deck {deck_id} was deleted but deleting its cards failed: "
                f"{cards_step.error}",
                original_exception=cards_step.error,
                completed_steps=[DELETE_DECKS],
                deck_id=deck_id,
            )

        logger.info(f"Deleted deck {deck_id} and {cards_step.value} card(s).")
        return None

    async def list_decks(self, user_id: Optional[str] = None) -> ListResult:
        """Return decks newest first, optionally only those owned by `user_id`."""
        filters = {"user_id": user_id} if user_id else {}
        rows_step = await self._step(
            "list decks",
            self._client.fetch_many,
            "decks",
            filters,
            order_by="created_at",
            ascending=False,
        )
        if not rows_step.ok:
            return ListResult(error=rows_step.error)
        decks_step = self._marshal(
            lambda rows: [db_utils.db_row_to_deck(r) for r in rows],
            rows_step.value or [],
        )
        return ListResult(decks=decks_step.value, error=decks_step.error)

    # --- Steps ---

    async def _step(
        self,
        description: str,
        call: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> StepResult[T]:
        """Run one store call and report its outcome by value."""
        try:
            value = await call(*args, **kwargs)
        except Exception as e:
            if isinstance(e, (RecordNotFoundError, UnauthenticatedError)):
                logger.debug(f"Step '{description}' failed: {e}")
            else:
                logger.error(f"Step '{description}' failed: {e}")
            return StepResult(error=e)
        logger.debug(f"Step '{description}' succeeded.")
        return StepResult(value=value)

    @staticmethod
    def _marshal(convert: Callable[[T], U], value: T) -> StepResult[U]:
        try:
            return StepResult(value=convert(value))
        except MarshallingError as e:
            logger.error(f"Could not convert store rows: {e}")
            return StepResult(error=e)

    async def _resolve_identity(self) -> StepResult[str]:
        identity_step = await self._step(
            "resolve identity", self._client.current_identity
        )
        if identity_step.ok and not identity_step.value:
            return StepResult(
                error=UnauthenticatedError("No current identity.")
            )
        return identity_step

    async def _fetch_deck(self, deck_id: Optional[str]) -> StepResult[Deck]:
        if not deck_id:
            return StepResult(error=DeckNotFoundError(deck_id))

        row_step = await self._step(
            "fetch decks", self._client.fetch_one, "decks", {"id": deck_id}
        )
        if not row_step.ok:
            if isinstance(row_step.error, RecordNotFoundError):
                return StepResult(
                    error=DeckNotFoundError(
                        deck_id, original_exception=row_step.error
                    )
                )
            return StepResult(error=row_step.error)
        if not row_step.value:
            return StepResult(error=DeckNotFoundError(deck_id))
        return self._marshal(db_utils.db_row_to_deck, row_step.value)

    async def _fetch_cards(self, deck_id: str) -> StepResult[List[Card]]:
        rows_step = await self._step(
            "fetch cards",
            self._client.fetch_many,
            "cards",
            {"deck_id": deck_id},
            order_by="position",
            ascending=True,
        )
        if not rows_step.ok:
            return StepResult(error=rows_step.error)
        return self._marshal(db_utils.db_rows_to_cards, rows_step.value or [])

    async def _insert_aggregate(
        self,
        deck_record: Dict[str, Any],
        card_records_for: CardRecordsFactory,
    ) -> StepResult[str]:
        """
        Insert a deck, then its cards, undoing the deck if the cards fail.

        Returns the new deck id. A card-insert failure is reported as the
        original error once the deck has been removed again, or as a
        `PartialAggregateFailure` when the removal fails too.
        """
        deck_step = await self._step(
            INSERT_DECKS, self._client.insert, "decks", deck_record
        )
        if not deck_step.ok:
            return StepResult(error=deck_step.error)
        new_deck_id = deck_step.value[0].get("id") if deck_step.value else None
        if not new_deck_id:
            return StepResult(
                error=StoreError("Store returned no row for the inserted deck.")
            )
        completed = [INSERT_DECKS]

        card_records = card_records_for(new_deck_id)
        if card_records:
            cards_step = await self._step(
                INSERT_CARDS, self._client.insert, "cards", card_records
            )
            if not cards_step.ok:
                return StepResult(
                    error=await self._compensate(
                        new_deck_id, completed, cards_step.error
                    )
                )
        return StepResult(value=new_deck_id)

    async def _compensate(
        self, deck_id: str, completed: List[str], cause: Exception
    ) -> Exception:
        """
        Remove a half-written deck. Returns the error to report.
        """
        logger.warning(
            f"Writing cards for new deck {deck_id} failed; removing the deck."
        )
        for collection, column in (("cards", "deck_id"), ("decks", "id")):
            undo_step = await self._step(
                f"undo {collection}",
                self._client.delete,
                collection,
                {column: deck_id},
            )
            if not undo_step.ok:
                logger.error(
                    f"Deck {deck_id} could not be removed after a failed write; "
                    f"completed steps: {completed}."
                )
                return PartialAggregateFailure(
                    f"Deck {deck_id} was left in place after a failed write: "
                    f"{cause}",
                    original_exception=cause,
                    completed_steps=completed,
                    deck_id=deck_id,
                    compensation_error=undo_step.error,
                )
        return cause
