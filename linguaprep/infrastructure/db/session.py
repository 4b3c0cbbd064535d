from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from linguaprep.core.config import config

from .base import Base  # noqa: F401

_connect_args = {}
if config.DATABASE_URL.startswith("sqlite"):
    # check_same_thread=False is needed only for SQLite with multiple threads
    _connect_args = {"check_same_thread": False}

engine = create_engine(
    config.DATABASE_URL,
    connect_args=_connect_args,
    echo=config.DATABASE_ECHO,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
