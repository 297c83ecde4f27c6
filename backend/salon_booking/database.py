from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from .config import settings


def build_engine(url: str):
    """Engine for url. SQLite gets thread sharing and foreign keys."""
    if not url.startswith("sqlite"):
        return create_engine(url)

    # check_same_thread=False: FastAPI serves sync endpoints from a thread pool
    sqlite_engine = create_engine(url, connect_args={"check_same_thread": False})

    # SQLite ignores foreign keys unless asked per connection
    @event.listens_for(sqlite_engine, "connect")
    def enable_sqlite_fk(dbapi_connection, _):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


engine = build_engine(settings.resolved_database_url)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# FastAPI dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
