from typing import Optional, Sequence


class DatabaseError(Exception):
    """Base exception for database-related errors."""

    def __init__(
        self, message: str, original_exception: Optional[Exception] = None
    ):
        super().__init__(message)
        self.original_exception = original_exception


class DatabaseConnectionError(DatabaseError):
    """Raised for errors connecting to the database."""

    pass


class SchemaInitializationError(DatabaseError):
    """Raised for errors during schema setup."""

    pass


class MarshallingError(DatabaseError):
    """Indicates an error during data conversion between application models
    and DB format."""

    pass


class StoreError(DatabaseError):
    """Raised for any failure surfaced by the persistence client."""

    pass


class RecordNotFoundError(StoreError):
    """Raised when a single-row fetch matches no row."""

    pass


class DeckNotFoundError(DatabaseError):
    """Raised when a specified deck is not found."""

    def __init__(
        self,
        deck_id: Optional[str],
        original_exception: Optional[Exception] = None,
    ):
        super().__init__(
            f"Deck not found: {deck_id!r}",
            original_exception=original_exception,
        )
        self.deck_id = deck_id


class UnauthenticatedError(DatabaseError):
    """Raised when an operation needs a current identity and none is set."""

    pass


class PartialAggregateFailure(DatabaseError):
    """
    A multi-step deck write failed after some of its steps were applied.

    `completed_steps` lists the steps still in effect, `deck_id` names the
    deck whose rows were left inconsistent and `compensation_error` holds the
    error raised while trying to undo the completed steps (if any).
    """

    def __init__(
        self,
        message: str,
        original_exception: Optional[Exception] = None,
        completed_steps: Sequence[str] = (),
        deck_id: Optional[str] = None,
        compensation_error: Optional[Exception] = None,
    ):
        super().__init__(message, original_exception=original_exception)
        self.completed_steps = list(completed_steps)
        self.deck_id = deck_id
        self.compensation_error = compensation_error


class DraftValidationError(ValueError):
    """Raised when a deck draft cannot be submitted."""

    pass
