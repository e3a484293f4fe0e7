from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mockprep.core.config import settings
from .base import Base  # noqa: F401


def build_engine(database_url: str):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # sourcing tasks open sessions from worker threads
        connect_args["check_same_thread"] = False
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(bind) -> sessionmaker:
    return sessionmaker(bind=bind, autocommit=False, autoflush=False)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = build_session_factory(engine)
