# main.py
# Role: Application entry point for Travel Spending.
#       Builds the FastAPI app for the configured storage backend,
#       mounts static assets, and registers all route modules.

"""
Main FastAPI app for the travel spending tracker.

Here we only:
- load configuration
- set up logging and static files
- open the transaction storage (local JSON blob or synced SQL collection)
- include route modules
"""

import logging
import os
import threading

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from db import SessionLocal, init_db, make_session_factory
from spending.config import SpendingConfig, load_config
from spending.routes_root import router as root_router
from spending.routes_transactions import router as transactions_router
from spending.routes_settings import router as settings_router
from spending.routes_dashboard import router as dashboard_router
from spending.services.collection import TransactionCollection
from spending.services.store import LocalTransactionStore

STATIC_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "spending", "static")

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(config: SpendingConfig | None = None, engine=None) -> FastAPI:
    """
    Build the app.

    `engine` overrides the default SQLAlchemy engine for the synced backend
    (tests pass an in-memory SQLite engine).
    """
    config = config or load_config()

    # FastAPI application instance
    app = FastAPI(title="Travel Spending")
    app.state.config = config
    app.state.main_currencies = {}

    # -------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------

    if config.backend == "synced":
        # Create database tables (only if they don't exist yet)
        init_db(engine)
        session_factory = make_session_factory(engine) if engine is not None else SessionLocal
        app.state.collection = TransactionCollection(session_factory)
        app.state.synced_stores = {}
        app.state.synced_stores_lock = threading.Lock()
    else:
        app.state.local_store = LocalTransactionStore(config.data_file)

    logger.info("Travel Spending started with %s backend", config.backend)

    # Serve static files (CSS) from /static
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    # -------------------------------------------------------------------
    # Include routers
    # -------------------------------------------------------------------

    # Root / landing routes
    app.include_router(root_router)

    # Transactions list and add / edit / delete form
    app.include_router(transactions_router)

    # Settings: main currency, CSV export / import
    app.include_router(settings_router)

    # Dashboard (totals, per-category / per-date / per-currency series)
    app.include_router(dashboard_router)

    return app


settings = load_config()
configure_logging(settings.log_level)
app = create_app(settings)
