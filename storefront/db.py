import os
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./neotech.db")

Base = declarative_base()


def make_engine(url: str, **kwargs) -> Engine:
    """Engine for `url`. SQLite connections enforce foreign keys (order_items -> orders)."""
    is_sqlite = url.startswith("sqlite")
    # For SQLite, enable check_same_thread=False for multithreading in FastAPI
    connect_args = {"check_same_thread": False} if is_sqlite else {}
    engine = create_engine(url, connect_args=connect_args, future=True, **kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def init_db(bind: Engine) -> None:
    # Create tables if not existing; there are no migrations.
    from . import models  # noqa: F401  registers the tables on Base
    Base.metadata.create_all(bind=bind)


engine = make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
