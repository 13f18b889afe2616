from collections.abc import Generator

from fastapi import Depends, Header, Query
from sqlalchemy.orm import Session

from schoolplan.core.config import Settings, get_settings
from schoolplan.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_institution_id(
    institution_id: str | None = Query(default=None, min_length=1, max_length=36),
    settings: Settings = Depends(get_settings),
) -> str:
    return institution_id or settings.default_institution_id


def get_actor(x_actor: str | None = Header(default=None, max_length=200)) -> str | None:
    if x_actor is None:
        return None
    return x_actor.strip() or None
