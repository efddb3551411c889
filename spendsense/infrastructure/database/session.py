"""Database session management with connection pooling"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from spendsense.config import settings
from spendsense.infrastructure.database.repositories import SqlAlchemyFinancialDataStore


def engine_options(database_url: str) -> Dict[str, Any]:
    """Pool settings per backend; SQLite connections are shared across threads"""
    if database_url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    # Connection pool: max 20 connections, recycled hourly
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,
    }


engine = create_engine(settings.database_url, **engine_options(settings.database_url))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    """Request-scoped database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def financial_data_store() -> Iterator[SqlAlchemyFinancialDataStore]:
    """
    Store for one unit of work, closed on exit.

    Entry point for callers building PersonaService or RecommendationService
    outside a framework that injects get_db.
    """
    db = SessionLocal()
    try:
        yield SqlAlchemyFinancialDataStore(db)
    finally:
        db.close()
