"""
Database tables and connection handle with SQLAlchemy.

Uses async SQLAlchemy for non-blocking database operations.

Design Decisions:
- AsyncSession for non-blocking operations
- One Database handle per process, constructed at startup and passed
  in explicitly; no module-level engine
- Session-per-operation pattern with rollback on failure
"""

import datetime
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator
from uuid import uuid4

from sqlalchemy import Date, ForeignKey, Integer, String
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from invoicedesk.config import Settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


class CustomerRecord(Base):
    """A customer that invoices are billed to."""
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255))
    image_url: Mapped[str] = mapped_column(String(255))


class InvoiceRecord(Base):
    """
    A single invoice.

    Amount is stored in cents. The customer reference is only enforced
    by the foreign key; nothing checks it before insert.
    """
    __tablename__ = "invoices"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    customer_id: Mapped[str] = mapped_column(String(36), ForeignKey("customers.id"), index=True)
    amount: Mapped[int] = mapped_column(Integer)
    status: Mapped[str] = mapped_column(String(16))  # pending, paid
    date: Mapped[datetime.date] = mapped_column(Date)


class UserRecord(Base):
    """Dashboard user checked by the credentials provider."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid4()))
    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255))  # bcrypt hash


class Database:
    """
    Process-wide persistence handle.

    Lifecycle:
        database = Database.from_settings(settings)   # at startup
        await database.create_all()
        async with database.session() as session:     # per operation
            ...
        await database.close()                        # at shutdown
    """

    def __init__(self, url: str, *, echo: bool = False, **engine_options: Any) -> None:
        """
        Create the engine. No connection is opened until first use.

        Args:
            url: SQLAlchemy async URL, e.g. postgresql+asyncpg://...
            echo: Log every SQL statement
            engine_options: Passed through to create_async_engine
        """
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_options)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """Build the production handle with a bounded connection pool."""
        database = cls(
            str(settings.database_url),
            echo=settings.debug,
            pool_size=5,
            max_overflow=10,
            pool_timeout=30,
        )
        # Extract host from MultiHostUrl (Pydantic v2)
        hosts = settings.database_url.hosts()
        host_info = hosts[0]["host"] if hosts else "unknown"
        logger.info(f"Database engine created for {host_info}")
        return database

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Open a session for one operation.

        Usage:
            async with database.session() as session:
                await session.execute(stmt)
                await session.commit()
        """
        session = self._session_factory()
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def create_all(self) -> None:
        """
        Create any missing tables.

        In production, use migrations instead.
        """
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized")

    async def close(self) -> None:
        """Dispose of pooled connections on shutdown."""
        await self.engine.dispose()
        logger.info("Database connections closed")
