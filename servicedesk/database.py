from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from servicedesk.config import settings


def _engine_options(url: str) -> dict:
    """Pool settings for server databases; SQLite only needs thread sharing"""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,  # Verify connections before using
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
    }


engine = create_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,  # Log SQL queries in debug mode
    **_engine_options(settings.DATABASE_URL),
)

# Request-scoped sessions; repositories commit their own writes
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """
    FastAPI dependency for database sessions.

    Yields a session bound to the grant and account tables and closes it
    once the request finishes.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
