from __future__ import annotations

from collections.abc import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from cryptoacademy.core.config import settings


engine = create_engine(settings.database_url, pool_pre_ping=True, pool_size=20, max_overflow=10, pool_timeout=2)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
