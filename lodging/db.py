from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine

from . import config
from . import models  # noqa: F401  (registers the tables on SQLModel.metadata)


def make_engine(url: Optional[str] = None, **kwargs) -> Engine:
    url = url or config.DATABASE_URL
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True, **kwargs)


def init_db(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
