# src/little_stories/db/triggers.py
"""Database-side maintenance of story rating aggregates.

`stories.avg_rating` and `stories.rating_count` are recomputed by triggers on
the `ratings` table after every insert, update and delete. The application
never writes these columns itself.
"""

from __future__ import annotations

from sqlalchemy import DDL, Table, event

_RECOMPUTE = (
    "UPDATE stories SET "
    "avg_rating = COALESCE((SELECT AVG(rating) FROM ratings WHERE story_id = {ref}.story_id), 0), "
    "rating_count = (SELECT COUNT(*) FROM ratings WHERE story_id = {ref}.story_id) "
    "WHERE story_id = {ref}.story_id;"
)

SQLITE_STATEMENTS: tuple[str, ...] = (
    "CREATE TRIGGER IF NOT EXISTS ratings_refresh_after_insert AFTER INSERT ON ratings "
    f"BEGIN {_RECOMPUTE.format(ref='NEW')} END",
    "CREATE TRIGGER IF NOT EXISTS ratings_refresh_after_update AFTER UPDATE ON ratings "
    f"BEGIN {_RECOMPUTE.format(ref='NEW')} {_RECOMPUTE.format(ref='OLD')} END",
    "CREATE TRIGGER IF NOT EXISTS ratings_refresh_after_delete AFTER DELETE ON ratings "
    f"BEGIN {_RECOMPUTE.format(ref='OLD')} END",
)

POSTGRESQL_STATEMENTS: tuple[str, ...] = (
    """
    CREATE OR REPLACE FUNCTION refresh_story_rating() RETURNS trigger AS $$
    DECLARE
        target_story varchar(36);
    BEGIN
        IF TG_OP = 'DELETE' THEN
            target_story := OLD.story_id;
        ELSE
            target_story := NEW.story_id;
        END IF;
        UPDATE stories SET
            avg_rating = COALESCE((SELECT AVG(rating) FROM ratings WHERE story_id = target_story), 0),
            rating_count = (SELECT COUNT(*) FROM ratings WHERE story_id = target_story)
        WHERE story_id = target_story;
        IF TG_OP = 'UPDATE' AND OLD.story_id IS DISTINCT FROM NEW.story_id THEN
            UPDATE stories SET
                avg_rating = COALESCE((SELECT AVG(rating) FROM ratings WHERE story_id = OLD.story_id), 0),
                rating_count = (SELECT COUNT(*) FROM ratings WHERE story_id = OLD.story_id)
            WHERE story_id = OLD.story_id;
        END IF;
        RETURN NULL;
    END;
    $$ LANGUAGE plpgsql
    """,
    "DROP TRIGGER IF EXISTS ratings_refresh_story ON ratings",
    """
    CREATE TRIGGER ratings_refresh_story
    AFTER INSERT OR UPDATE OR DELETE ON ratings
    FOR EACH ROW EXECUTE FUNCTION refresh_story_rating()
    """,
)

SQLITE_DROP_STATEMENTS: tuple[str, ...] = (
    "DROP TRIGGER IF EXISTS ratings_refresh_after_insert",
    "DROP TRIGGER IF EXISTS ratings_refresh_after_update",
    "DROP TRIGGER IF EXISTS ratings_refresh_after_delete",
)

POSTGRESQL_DROP_STATEMENTS: tuple[str, ...] = (
    "DROP TRIGGER IF EXISTS ratings_refresh_story ON ratings",
    "DROP FUNCTION IF EXISTS refresh_story_rating()",
)


def statements_for(dialect: str) -> tuple[str, ...]:
    """Return the trigger DDL for a dialect name, empty if unsupported."""
    if dialect == "sqlite":
        return SQLITE_STATEMENTS
    if dialect == "postgresql":
        return POSTGRESQL_STATEMENTS
    return ()


def drop_statements_for(dialect: str) -> tuple[str, ...]:
    """Return the DDL removing the triggers for a dialect name."""
    if dialect == "sqlite":
        return SQLITE_DROP_STATEMENTS
    if dialect == "postgresql":
        return POSTGRESQL_DROP_STATEMENTS
    return ()


def install_rating_triggers(ratings_table: Table) -> None:
    """Emit the trigger DDL whenever `ratings_table` is created via metadata."""
    for dialect in ("sqlite", "postgresql"):
        for statement in statements_for(dialect):
            event.listen(
                ratings_table,
                "after_create",
                DDL(statement).execute_if(dialect=dialect),
            )
