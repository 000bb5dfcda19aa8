from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from pydantic_settings import BaseSettings
from fastapi import Request
from functools import lru_cache, wraps
from typing import List, Literal
import logging

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    database_url: str = "sqlite:///./walkin_drive.db"
    # "memory" keeps everything in process; "sql" uses database_url
    storage_backend: Literal["memory", "sql"] = "memory"
    seed_demo_data: bool = True
    serial_prefix: str = "WD"
    qr_code_url_template: str = (
        "https://api.qrserver.com/v1/create-qr-code/?data={serial_no}&size=150x150"
    )
    # Off: any nextRound string is accepted on feedback
    strict_round_transitions: bool = False
    cors_origins: List[str] = ["*"]
    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings():
    return Settings()


settings = get_settings()

# SQLite needs check_same_thread=False: sync endpoints run inside the threadpool
engine = create_engine(
    settings.database_url,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
    pool_pre_ping=True
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_repository(request: Request):
    """
    FastAPI dependency: the repository built during application startup.

    Call sites only see the Repository interface, so the in-memory and SQL
    backends are interchangeable (tests may swap it through
    app.dependency_overrides).
    """
    return request.app.state.repository


def transactional(func):
    """
    Transaction decorator: commit on success, rollback and re-raise on error.

    The session is looked up as the first positional argument, or the first
    argument after `self` for methods, or the `db` keyword.

    Usage:
        @transactional
        def some_operation(db: Session, ...):
            db.add(record)
            # no manual commit; the decorator handles it
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        db = kwargs.get('db')
        if db is None:
            db = next((arg for arg in args[:2] if isinstance(arg, Session)), None)

        if db is None:
            raise ValueError(
                f"@transactional requires a 'db: Session' argument, "
                f"but got args={args}, kwargs={kwargs}"
            )

        try:
            result = func(*args, **kwargs)
            db.commit()
            return result
        except Exception as e:
            logger.error(f"Transaction failed in {func.__name__}: {e}", exc_info=True)
            db.rollback()
            raise

    return wrapper
