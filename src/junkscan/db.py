"""Database connection and session management."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import Session, sessionmaker

from junkscan.config import Settings
from junkscan.errors import ConfigError

logger = structlog.get_logger()


class StoreCredentials(BaseModel):
    """Credential bundle for the signal store, supplied as one JSON document."""

    drivername: str
    username: str | None = None
    password: str | None = None
    host: str | None = None
    port: int | None = None
    database: str | None = None
    query: dict[str, str] = {}

    def to_url(self) -> URL:
        return URL.create(
            drivername=self.drivername,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
            query=self.query,
        )


def parse_store_credentials(raw: str) -> StoreCredentials:
    """Parse the JSON credential bundle, raising ConfigError when malformed."""
    try:
        return StoreCredentials.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigError(f"Malformed store credentials: {exc.error_count()} error(s)") from exc


def resolve_database_url(settings: Settings) -> URL:
    """Pick the store URL: the credential bundle when present, else database_url."""
    if settings.store_credentials is not None:
        return parse_store_credentials(settings.store_credentials.get_secret_value()).to_url()
    return make_url(settings.database_url)


def create_store_engine(url: URL | str, **kwargs: Any) -> Engine:
    url = make_url(url)
    if url.get_backend_name() != "sqlite":
        kwargs.setdefault("pool_pre_ping", True)
        kwargs.setdefault("pool_size", 5)
        kwargs.setdefault("max_overflow", 10)
    engine = create_engine(url, **kwargs)
    logger.info("Signal store engine created", backend=url.get_backend_name(), database=url.database)
    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def session_scope(session_factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """Provide a transactional scope around a series of operations."""
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
