from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from tracker.core.config import settings


def _engine_options(database_url: str) -> dict:
    if database_url.lower().startswith("sqlite"):
        # SQLite connections are shared between the request threads of the test client
        return {"connect_args": {"check_same_thread": False}}

    # pool_recycle: recycle connections before server-side timeouts
    # pool_pre_ping: test connections before use (prevents stale connections)
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_recycle": settings.DB_POOL_RECYCLE,
        "pool_pre_ping": True,
        "pool_timeout": 30,
    }


database_url = settings.DATABASE_URL
if "mysql" in database_url.lower() and "charset" not in database_url.lower():
    separator = "&" if "?" in database_url else "?"
    database_url = f"{database_url}{separator}charset=utf8mb4"

engine = create_engine(database_url, echo=False, **_engine_options(database_url))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
