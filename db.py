# db.py
# Role: Database bootstrap for the synced storage backend.
#       Defines the SQLAlchemy engine, session factory, and declarative Base.
#       Also ensures the on-disk database directory exists before the app starts.

"""
Database setup for the synced transaction collection.

- Uses SQLite database at: <project_root>/database/spending.db
- DATABASE_URL overrides it (e.g. a hosted Postgres instance).
"""

import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from dotenv import load_dotenv

load_dotenv()

# Base directory of the project (where this module lives)
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

# Folder for SQLite DB (created on startup if missing)
DB_DIR = os.path.join(BASE_DIR, "database")
os.makedirs(DB_DIR, exist_ok=True)  # ensure folder exists

# Full path to the SQLite database file
DB_PATH = os.path.join(DB_DIR, "spending.db")

# SQLAlchemy connection URL
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DB_PATH}")


def make_engine(url: str):
    # For SQLite, we need check_same_thread=False for FastAPI (threaded request handling)
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


def make_session_factory(bind):
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=bind,
    )


engine = make_engine(DATABASE_URL)

# Standard session factory used by TransactionCollection
SessionLocal = make_session_factory(engine)

# Declarative base class for ORM models
Base = declarative_base()


def init_db(bind=None) -> None:
    """Create tables (only if they don't exist yet)."""
    # models must be imported so their tables are registered on Base
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
