"""
Engine, session factory and the declarative Base shared by every model.

Sessions are request-scoped through get_db. Services commit explicitly, once
per state transition; anything left uncommitted when a request fails is
rolled back when the session closes.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from app.config import settings

# pre-ping so a restarted Postgres doesn't surface as "connection reset"
engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,
    pool_size=10,
    max_overflow=20,
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


class Base(DeclarativeBase):
    pass


def get_db():
    """Usage: db: Session = Depends(get_db)"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
