# db.py
from sqlalchemy import (
    create_engine,
    event,
    Column,
    Integer,
    String,
    Text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

DEFAULT_DB_URL = "sqlite:///skill_issue.db"

Base = declarative_base()


def make_engine(db_url: str = DEFAULT_DB_URL) -> Engine:
    """
    Build the engine for one process. Callers own its lifecycle
    (create at startup, ``dispose()`` at shutdown).
    """
    connect_args = {}
    if db_url.startswith("sqlite"):
        # Flask serves requests on several threads
        connect_args["check_same_thread"] = False

    engine = create_engine(db_url, future=True, echo=False, connect_args=connect_args)

    if db_url.startswith("sqlite"):
        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys=ON")
            cur.execute("PRAGMA busy_timeout=5000")
            cur.close()

    return engine


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


class WebCache(Base):
    """
    Raw upstream responses (already normalized), one row per cache key.

    A row is servable while ``fetched_at + coalesce(stale_after_seconds, ttl_seconds)``
    is in the future; it is fresh while ``fetched_at + ttl_seconds`` is.
    """
    __tablename__ = "web_cache"

    key = Column(String, primary_key=True)
    payload = Column(Text, nullable=False)
    status = Column(Integer, nullable=False, default=200)
    fetched_at = Column(Integer, nullable=False, index=True)
    ttl_seconds = Column(Integer, nullable=False)
    stale_after_seconds = Column(Integer, nullable=True)


def init_db(engine: Engine) -> None:
    # Ensure entity models are registered with Base metadata
    import models_normalized  # noqa: F401

    Base.metadata.create_all(bind=engine)
