"""
Defines the database schema for flashdeck using a SQL string constant.
This keeps the schema definition separate from the database connection and
operation logic.
"""

# cards.deck_id carries no FOREIGN KEY: the store does not cascade deletes and
# the deck row is removed before its cards.
DB_SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS decks (
        id VARCHAR PRIMARY KEY,
        user_id VARCHAR NOT NULL,
        name VARCHAR NOT NULL,
        description VARCHAR,
        created_at VARCHAR NOT NULL,
        is_public BOOLEAN NOT NULL DEFAULT FALSE
    );

    CREATE TABLE IF NOT EXISTS cards (
        id VARCHAR PRIMARY KEY,
        deck_id VARCHAR NOT NULL,
        term VARCHAR NOT NULL,
        definition VARCHAR NOT NULL,
        "position" INTEGER NOT NULL,
        UNIQUE (deck_id, "position")
    );

    CREATE INDEX IF NOT EXISTS idx_decks_user_id ON decks (user_id);
    CREATE INDEX IF NOT EXISTS idx_cards_deck_id ON cards (deck_id);
"""

# Columns accepted in filters, orderings and inserts, per collection.
COLLECTION_COLUMNS = {
    "decks": ("id", "user_id", "name", "description", "created_at", "is_public"),
    "cards": ("id", "deck_id", "term", "definition", "position"),
}
