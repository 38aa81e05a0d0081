"""
SQLAlchemy-backed library store (SQLite or PostgreSQL).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Engine,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from storytime.common.errors import StoreError

from .models import (
    PREFERENCES_ID,
    CharacterSuggestion,
    Story,
    StoryDraft,
    UserPreferences,
)
from .store import LibraryStore

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class StoryRow(Base):
    __tablename__ = "stories"
    # AUTOINCREMENT keeps SQLite from handing out the id of a deleted row again.
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    characters: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    setting: Mapped[str] = mapped_column(Text, nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    story_length: Mapped[str] = mapped_column(String(16), nullable=False)
    moral_theme: Mapped[str | None] = mapped_column(Text, nullable=True)
    illustration_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    curriculum_stage: Mapped[str] = mapped_column(String(32), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def to_story(self) -> Story:
        return Story(
            id=self.id,
            title=self.title,
            content=self.content,
            characters=tuple(self.characters),
            setting=self.setting,
            age=self.age,
            story_length=self.story_length,
            curriculum_stage=self.curriculum_stage,
            created_at=_as_aware(self.created_at),
            moral_theme=self.moral_theme,
            illustration_url=self.illustration_url,
        )


class UserPreferencesRow(Base):
    __tablename__ = "user_preferences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    child_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    default_age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    preferred_length: Mapped[str | None] = mapped_column(String(16), nullable=True)
    favourite_themes: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    language_enrichment: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    auto_save: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    illustration_style: Mapped[str | None] = mapped_column(String(32), nullable=True)

    @classmethod
    def from_preferences(cls, preferences: UserPreferences) -> "UserPreferencesRow":
        return cls(
            id=PREFERENCES_ID,
            child_name=preferences.child_name,
            default_age=preferences.default_age,
            preferred_length=preferences.preferred_length,
            favourite_themes=(
                list(preferences.favourite_themes)
                if preferences.favourite_themes is not None
                else None
            ),
            language_enrichment=preferences.language_enrichment,
            auto_save=preferences.auto_save,
            illustration_style=preferences.illustration_style,
        )

    def to_preferences(self) -> UserPreferences:
        return UserPreferences(
            id=self.id,
            child_name=self.child_name,
            default_age=self.default_age,
            preferred_length=self.preferred_length,
            favourite_themes=(
                tuple(self.favourite_themes) if self.favourite_themes is not None else None
            ),
            language_enrichment=self.language_enrichment,
            auto_save=self.auto_save,
            illustration_style=self.illustration_style,
        )


class CharacterSuggestionRow(Base):
    __tablename__ = "character_suggestions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    character: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def to_suggestion(self) -> CharacterSuggestion:
        return CharacterSuggestion(
            id=self.id,
            character=self.character,
            usage_count=self.usage_count,
        )


def _as_aware(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back out.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def create_library_engine(database_url: str, **engine_kwargs: Any) -> Engine:
    """
    Create an engine suitable for concurrent use from FastAPI's worker threads.
    """
    if database_url.startswith("sqlite"):
        connect_args = dict(engine_kwargs.pop("connect_args", {}))
        connect_args.setdefault("check_same_thread", False)
        engine_kwargs["connect_args"] = connect_args
        if ":memory:" in database_url or database_url.rstrip("/") == "sqlite:":
            # One shared connection, otherwise every thread sees an empty database.
            engine_kwargs.setdefault("poolclass", StaticPool)
    return create_engine(database_url, **engine_kwargs)


class SqlLibraryStore(LibraryStore):
    """
    Library store backed by a relational database through SQLAlchemy.
    """

    def __init__(self, database_url: str | None = None, *, engine: Engine | None = None) -> None:
        if engine is None:
            if not database_url:
                raise ValueError("database_url or engine is required.")
            engine = create_library_engine(database_url)
        self._engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    @property
    def engine(self) -> Engine:
        return self._engine

    def create_schema(self) -> None:
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to create library schema: {exc}") from exc

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError(f"Library store operation failed: {exc}") from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------ stories

    def create_story(self, draft: StoryDraft) -> Story:
        with self._session() as session:
            row = StoryRow(
                title=draft.title,
                content=draft.content,
                characters=list(draft.characters),
                setting=draft.setting,
                age=draft.age,
                story_length=draft.story_length,
                moral_theme=draft.moral_theme,
                illustration_url=draft.illustration_url,
                curriculum_stage=draft.curriculum_stage,
                created_at=draft.created_at,
            )
            session.add(row)
            session.flush()
            return row.to_story()

    def get_all_stories(self) -> list[Story]:
        with self._session() as session:
            rows = session.scalars(
                select(StoryRow).order_by(StoryRow.created_at.desc(), StoryRow.id.desc())
            )
            return [row.to_story() for row in rows]

    def get_story(self, story_id: int) -> Story | None:
        with self._session() as session:
            row = session.get(StoryRow, story_id)
            return row.to_story() if row is not None else None

    def delete_story(self, story_id: int) -> bool:
        with self._session() as session:
            result = session.execute(delete(StoryRow).where(StoryRow.id == story_id))
            return (result.rowcount or 0) > 0

    # ------------------------------------------------------------------ preferences

    def get_user_preferences(self) -> UserPreferences:
        with self._session() as session:
            row = session.get(UserPreferencesRow, PREFERENCES_ID)
            if row is not None:
                return row.to_preferences()

        defaults = UserPreferences.defaults()
        try:
            with self._session() as session:
                session.add(UserPreferencesRow.from_preferences(defaults))
        except StoreError as exc:
            # Another request created the singleton first.
            if not isinstance(exc.__cause__, IntegrityError):
                raise
            logger.debug("Preferences singleton created concurrently; re-reading.")
            with self._session() as session:
                row = session.get(UserPreferencesRow, PREFERENCES_ID)
                if row is not None:
                    return row.to_preferences()
        return defaults

    def update_user_preferences(self, preferences: UserPreferences) -> UserPreferences:
        with self._session() as session:
            row = session.merge(UserPreferencesRow.from_preferences(preferences))
            session.flush()
            return row.to_preferences()

    # ------------------------------------------------------------------ character suggestions

    def get_character_suggestions(self) -> list[CharacterSuggestion]:
        with self._session() as session:
            rows = session.scalars(
                select(CharacterSuggestionRow).order_by(
                    CharacterSuggestionRow.usage_count.desc(), CharacterSuggestionRow.id.asc()
                )
            )
            return [row.to_suggestion() for row in rows]

    def add_character_suggestion(self, character: str, usage_count: int = 1) -> CharacterSuggestion:
        with self._session() as session:
            row = CharacterSuggestionRow(character=character, usage_count=usage_count)
            session.add(row)
            session.flush()
            return row.to_suggestion()

    def increment_character_usage(self, character: str) -> CharacterSuggestion:
        dialect = self._engine.dialect.name
        if dialect in {"sqlite", "postgresql"}:
            return self._upsert_usage(character, dialect)
        return self._update_or_insert_usage(character)

    def _upsert_usage(self, character: str, dialect: str) -> CharacterSuggestion:
        if dialect == "postgresql":
            from sqlalchemy.dialects.postgresql import insert
        else:
            from sqlalchemy.dialects.sqlite import insert

        table = CharacterSuggestionRow.__table__
        statement = (
            insert(table)
            .values(character=character, usage_count=1)
            .on_conflict_do_update(
                index_elements=[table.c.character],
                set_={"usage_count": table.c.usage_count + 1},
            )
            .returning(table.c.id, table.c.character, table.c.usage_count)
        )
        with self._session() as session:
            row = session.execute(statement).one()
            return CharacterSuggestion(id=row.id, character=row.character, usage_count=row.usage_count)

    def _update_or_insert_usage(self, character: str) -> CharacterSuggestion:
        increment = (
            update(CharacterSuggestionRow)
            .where(CharacterSuggestionRow.character == character)
            .values(usage_count=CharacterSuggestionRow.usage_count + 1)
        )
        with self._session() as session:
            if session.execute(increment).rowcount:
                row = session.scalars(
                    select(CharacterSuggestionRow).where(CharacterSuggestionRow.character == character)
                ).one()
                return row.to_suggestion()

        try:
            return self.add_character_suggestion(character, usage_count=1)
        except StoreError as exc:
            if not isinstance(exc.__cause__, IntegrityError):
                raise
            # Lost the insert race; the row exists now, so increment it.
            with self._session() as session:
                session.execute(increment)
                row = session.scalars(
                    select(CharacterSuggestionRow).where(CharacterSuggestionRow.character == character)
                ).one()
                return row.to_suggestion()

    def close(self) -> None:
        self._engine.dispose()
