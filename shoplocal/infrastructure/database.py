from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from shoplocal.core.config import settings


def build_engine(url: str):
    # SQLite connections are shared across the threadpool that runs sync routes
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(bind):
    # expire_on_commit=False: repositories hand detached rows back to the services
    return sessionmaker(bind=bind, autoflush=False, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = build_session_factory(engine)

Base = declarative_base()
