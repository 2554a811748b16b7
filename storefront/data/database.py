# storefront/data/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.utils.settings import DATABASE_URL


def build_engine(url: str = DATABASE_URL):
    # sqlite (local runs, tests) needs the connection shared across threads
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


engine = build_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False)

Base = declarative_base()


def get_db():
    """FastAPI dependency: one session per request.

    Closing an unfinished session rolls back whatever the request left open,
    so an aborted request never leaves a half-written purchase behind.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
