"""Relational persistence for blog posts (SQLAlchemy asyncio)."""

import logging
import time

from sqlalchemy import Integer, LargeBinary, Text, inspect, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from postboard.models.post import Post

logger = logging.getLogger(__name__)

POSTS_TABLE = "posts"


class Base(DeclarativeBase):
    pass


class PostRow(Base):
    __tablename__ = POSTS_TABLE

    # INTEGER PRIMARY KEY aliases SQLite's rowid
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    body: Mapped[str] = mapped_column(Text)
    image: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)
    publish_date: Mapped[int] = mapped_column(Integer)
    user_name: Mapped[str] = mapped_column(Text)
    avatar: Mapped[bytes | None] = mapped_column(LargeBinary, nullable=True)

    def to_post(self) -> Post:
        return Post(
            id=self.id,
            body=self.body,
            image=self.image or None,
            publish_date=self.publish_date,
            user_name=self.user_name,
            avatar=self.avatar or None,
        )


class StoreError(Exception):
    """A post could not be written or read, or the schema is missing."""


def now_millis() -> int:
    """Current time as integer epoch milliseconds."""
    return time.time_ns() // 1_000_000


def create_engine(database_url: str) -> AsyncEngine:
    """Create the process-wide async engine (and its connection pool)."""
    return create_async_engine(database_url)


class PostStore:
    """Owns the ``posts`` table.

    Every operation checks a connection out of the engine's pool for its
    own duration only, so nothing is held across the avatar fetch.  Inserts
    run in a single transaction; a failed or cancelled insert leaves no row.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    async def create_schema(self) -> None:
        """Create the posts table if it does not exist."""
        try:
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not create schema: {e}") from e
        logger.info("Ensured schema for table '%s'", POSTS_TABLE)

    async def verify_schema(self) -> None:
        """Raise StoreError unless the posts table exists."""
        try:
            async with self._engine.connect() as conn:
                exists = await conn.run_sync(
                    lambda sync_conn: inspect(sync_conn).has_table(POSTS_TABLE)
                )
        except SQLAlchemyError as e:
            raise StoreError(f"Could not inspect database schema: {e}") from e
        if not exists:
            raise StoreError(
                f"Table '{POSTS_TABLE}' does not exist; run scripts/init_db.py "
                "or set CREATE_SCHEMA_ON_STARTUP=true"
            )

    async def ping(self) -> bool:
        """Lightweight connectivity check for the health endpoint."""
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.warning("Store connectivity check failed", exc_info=True)
            return False

    async def insert(self, post: Post) -> Post:
        """Persist *post* and return it with its assigned id and publish date."""
        row = PostRow(
            body=post.body,
            image=post.image or None,
            publish_date=post.publish_date if post.publish_date is not None else now_millis(),
            user_name=post.user_name,
            avatar=post.avatar or None,
        )
        try:
            async with self._sessions() as session:
                async with session.begin():
                    session.add(row)
        except SQLAlchemyError as e:
            logger.exception("Failed to insert post by %s", post.user_name)
            raise StoreError(f"Could not insert post: {e}") from e

        logger.info("Stored post %d by %s", row.id, row.user_name)
        return row.to_post()

    async def list_all(self) -> list[Post]:
        """Return every committed post, oldest first (ascending id)."""
        try:
            async with self._sessions() as session:
                result = await session.scalars(select(PostRow).order_by(PostRow.id))
                return [row.to_post() for row in result]
        except SQLAlchemyError as e:
            logger.exception("Failed to list posts")
            raise StoreError(f"Could not list posts: {e}") from e

    async def dispose(self) -> None:
        await self._engine.dispose()
