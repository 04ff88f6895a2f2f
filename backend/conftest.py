"""Global pytest fixtures for testing."""

import contextlib
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import dotenv
import pytest
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ferry_database import Base
from ferry_database.models import ContentObject, ObjectType
from ferry_database.session import create_db_engine

with contextlib.suppress(OSError):
    dotenv.load_dotenv()

FIXTURES_DIR = Path(__file__).parent / "tests" / "fixtures"

# name, singular, schema
OBJECT_TYPES: list[tuple[str, str, dict[str, Any]]] = [
    ("documents", "document", {"translatable": ["title", "description", "body", "extra"]}),
    ("events", "event", {"translatable": ["title", "description"]}),
    ("folders", "folder", {"translatable": ["title"]}),
    ("locations", "location", {"translatable": []}),
    ("images", "image", {"translatable": ["title"]}),
]


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding the CSV / XML test sources."""
    return FIXTURES_DIR


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with all tables created."""
    engine = create_db_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(db_engine: Engine) -> Generator[Session, None, None]:
    """Database session with the object types registered."""
    factory = sessionmaker(bind=db_engine, expire_on_commit=False)
    with factory() as session:
        for name, singular, schema in OBJECT_TYPES:
            session.add(ObjectType(name=name, singular=singular, schema=schema))
        session.commit()
        yield session


@pytest.fixture
def make_object(db_session: Session) -> Callable[..., ContentObject]:
    """Factory saving a content object with sensible defaults."""

    def _make(type_: str = "documents", uname: str | None = None, **fields: Any) -> ContentObject:
        count = db_session.query(ContentObject).count() + 1
        obj = ContentObject(
            type=type_,
            uname=uname or f"{type_}-{count}",
            status=fields.pop("status", "on"),
            lang=fields.pop("lang", "en"),
            deleted=fields.pop("deleted", False),
            properties=fields.pop("properties", {}),
            **fields,
        )
        db_session.add(obj)
        db_session.commit()
        return obj

    return _make
