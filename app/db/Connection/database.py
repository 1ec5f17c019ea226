import logging
import os
from typing import Optional

import redis
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)


def _prepare_sqlite(database_url: str) -> dict:
    """Connect args for SQLite; also creates the database file's directory."""
    url = make_url(database_url)
    if url.database and url.database != ":memory:":
        directory = os.path.dirname(url.database)
        if directory:
            os.makedirs(directory, exist_ok=True)
    return {"check_same_thread": False}


def _build_engine(database_url: str):
    is_sqlite = database_url.startswith("sqlite")
    connect_args = _prepare_sqlite(database_url) if is_sqlite else {}
    db_engine = create_engine(
        database_url, pool_pre_ping=True, future=True, connect_args=connect_args
    )
    if is_sqlite:
        event.listen(db_engine, "connect", _set_sqlite_pragmas)
    return db_engine


def _set_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA busy_timeout = 5000")
        cursor.execute("PRAGMA journal_mode = WAL")
        cursor.execute("PRAGMA foreign_keys = ON")
    finally:
        cursor.close()


engine = _build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """Sessions for work that outlives the request, such as background hit counting."""
    return SessionLocal


def _build_redis_client(redis_url: Optional[str]):
    if not redis_url:
        return None
    return redis.Redis.from_url(
        redis_url,
        decode_responses=True,
        max_connections=50,
        socket_connect_timeout=2,
        socket_keepalive=True,
        retry_on_timeout=True,
    )


redis_client = _build_redis_client(settings.REDIS_URL)


def get_redis():
    return redis_client


def verify_redis_connection():
    if redis_client is None:
        logger.info("Redis not configured; redirect cache disabled")
        return False
    try:
        redis_client.ping()
        logger.info("Redis connection verified")
        return True
    except redis.exceptions.ConnectionError as e:
        logger.warning(f"Redis connection failed: {e}. Service will run with degraded performance.")
        return False
    except redis.exceptions.RedisError as e:
        logger.error(f"Unexpected Redis error: {e}")
        return False


def verify_database_connection():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False
