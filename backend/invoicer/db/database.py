"""
Database connection and session management.

Two engines live here: the local store (authoritative, on-device) and the
optional remote mirror used as the sync target.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    local_database_url = os.getenv("LOCAL_DATABASE_URL", "sqlite:///./invoicer.db")
    remote_database_url = os.getenv("REMOTE_DATABASE_URL") or None
    force_offline = _env_flag("FORCE_OFFLINE")
    sync_batch_size = int(os.getenv("SYNC_BATCH_SIZE", "500"))
    sql_echo = _env_flag("SQL_ECHO")


settings = Settings()


def _engine_for(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=settings.sql_echo, connect_args=connect_args)


engine = _engine_for(settings.local_database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Remote mirror tables use their own metadata so they are never created locally
MirrorBase = declarative_base()

remote_engine = _engine_for(settings.remote_database_url) if settings.remote_database_url else None
RemoteSessionLocal = (
    sessionmaker(autocommit=False, autoflush=False, bind=remote_engine)
    if remote_engine is not None
    else None
)


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
