from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from .config import settings


def build_engine(database_url: str, echo: bool = False, **engine_kwargs) -> Engine:
    """
    Create an engine for the configured database.

    SQLite does not enforce foreign keys unless asked per connection, so the
    pragma is switched on for every new connection; memberships, invitations
    and movies rely on ON DELETE CASCADE.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            pool_pre_ping=True,  # Verify connections before use
            pool_recycle=3600,   # Recycle connections after 1 hour
            pool_size=10,
            max_overflow=20,
            echo=echo,
            **engine_kwargs
        )

    sqlite_engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False},
        echo=echo,
        **engine_kwargs
    )

    @event.listens_for(sqlite_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return sqlite_engine


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create any missing tables. There are no migrations yet."""
    # Registers every model on Base.metadata
    from app.models import Base

    Base.metadata.create_all(bind=bind)


def get_db():
    """
    Database session dependency for FastAPI.
    One session per request, always closed afterwards.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
