"""
Database Connection Module

Provides the SQLAlchemy engine, session management and the table
metadata used by the SQL repository.
"""

import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    create_engine,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

# Database URL from environment
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql+psycopg://{os.getenv('POSTGRES_USER', 'finance')}:"
    f"{os.getenv('POSTGRES_PASSWORD', 'password')}@"
    f"{os.getenv('POSTGRES_HOST', 'localhost')}:"
    f"{os.getenv('POSTGRES_PORT', '5432')}/"
    f"{os.getenv('POSTGRES_DB', 'booking_finance')}"
)

metadata = MetaData()

discounts = Table(
    "discounts",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("tenant_id", String(64), nullable=False, index=True),
    Column("name", String(200), nullable=False),
    Column("description", String(500)),
    Column("kind", String(20), nullable=False),
    Column("value", Numeric(14, 2), nullable=False),
    Column("minimum_amount", Numeric(14, 2)),
    Column("maximum_discount", Numeric(14, 2)),
    Column("applicable_to", String(20), nullable=False, default="all"),
    Column("applicable_items", JSON, nullable=False, default=list),
    Column("start_date", DateTime, nullable=False),
    Column("end_date", DateTime, nullable=False),
    Column("usage_limit", Integer),
    Column("used_count", Integer, nullable=False, default=0),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("is_deleted", Boolean, nullable=False, default=False),
    Column("created_by", String(64)),
    Column("created_at", DateTime, nullable=False),
)

expenses = Table(
    "expenses",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("tenant_id", String(64), nullable=False, index=True),
    Column("category", String(100), nullable=False, index=True),
    Column("subcategory", String(100)),
    Column("description", String(500), nullable=False),
    Column("amount", Numeric(14, 2), nullable=False),
    Column("currency", String(3), nullable=False, default="GHS"),
    Column("date", DateTime, nullable=False, index=True),
    Column("status", String(20), nullable=False, default="pending"),
    Column("payment_method", String(30)),
    Column("vendor", String(200)),
    Column("tags", JSON, nullable=False, default=list),
    Column("notes", String(1000)),
    Column("is_recurring", Boolean, nullable=False, default=False),
    Column("recurring_frequency", String(20)),
    Column("recurring_end_date", DateTime),
    Column("created_by", String(64)),
    Column("approved_by", String(64)),
    Column("is_deleted", Boolean, nullable=False, default=False),
    Column("created_at", DateTime, nullable=False),
)

transactions = Table(
    "transactions",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("tenant_id", String(64), nullable=False, index=True),
    Column("type", String(20), nullable=False),
    Column("category", String(50), nullable=False),
    Column("amount", Numeric(14, 2), nullable=False),
    Column("description", String(500)),
    Column("is_deleted", Boolean, nullable=False, default=False),
    Column("created_at", DateTime, nullable=False, index=True),
)

tax_rules = Table(
    "tax_rules",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("tenant_id", String(64), index=True),
    Column("name", String(100), nullable=False),
    Column("rate", Numeric(7, 4), nullable=False),
    Column("applies_to", String(20), nullable=False),
    Column("is_super_admin_tax", Boolean, nullable=False, default=False),
    Column("active", Boolean, nullable=False, default=True),
    Column("category", String(20)),
    Column("position", Integer, nullable=False, autoincrement=False, default=0),
)


def create_db_engine(url: str | None = None, **kwargs) -> Engine:
    """Create an engine for the given URL (default: DATABASE_URL).

    Args:
        url: SQLAlchemy database URL
        kwargs: Extra engine arguments

    Returns:
        Engine
    """
    url = url or DATABASE_URL
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False, "timeout": 30})
    else:
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_size", 5)
        kwargs.setdefault("max_overflow", 10)
    return create_engine(url, **kwargs)


def init_schema(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    metadata.create_all(engine)


def get_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_context(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """Get database session as context manager.

    Yields:
        Database session
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
