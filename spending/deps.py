# spending/deps.py
# Role: Shared application-level dependencies and globals.
#       Provides the Jinja2 templates loader, the per-owner main currency map,
#       the session identity, and the transaction store dependency.

"""
Shared dependencies and globals for the spending app.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

from fastapi import Depends, HTTPException, Request
from fastapi.templating import Jinja2Templates

from spending.config import SpendingConfig
from spending.services.currency import format_amount
from spending.services.store import SyncedTransactionStore, TransactionStore

logger = logging.getLogger(__name__)

# -------------------------------------------------------------------
# Templates
# -------------------------------------------------------------------

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

# Jinja2 templates loader (used by all HTML-rendering routes)
templates = Jinja2Templates(directory=TEMPLATES_DIR)
templates.env.filters["amount"] = format_amount

# -------------------------------------------------------------------
# Session identity
# -------------------------------------------------------------------

# Owner id used by the local (single-user) variant
LOCAL_OWNER = "local"

# Headers set by the upstream auth layer in the synced variant
USER_ID_HEADER = "X-User-Id"
USER_EMAIL_HEADER = "X-User-Email"


@dataclass(frozen=True)
class UserSession:
    uid: str
    email: Optional[str] = None


def get_config(request: Request) -> SpendingConfig:
    return request.app.state.config


def get_current_user(
    request: Request,
    config: SpendingConfig = Depends(get_config),
) -> UserSession:
    """
    Local variant: always the single local user.
    Synced variant: identity comes from the auth headers; missing id -> 401.
    """
    if config.backend == "local":
        return UserSession(uid=LOCAL_OWNER)

    uid = (request.headers.get(USER_ID_HEADER) or "").strip()
    if not uid:
        raise HTTPException(status_code=401, detail="Not signed in")
    email = (request.headers.get(USER_EMAIL_HEADER) or "").strip() or None
    return UserSession(uid=uid, email=email)


# -------------------------------------------------------------------
# Transaction store
# -------------------------------------------------------------------

def get_store(
    request: Request,
    user: UserSession = Depends(get_current_user),
) -> TransactionStore:
    """
    Local variant: the one LocalTransactionStore created at startup.
    Synced variant: one SyncedTransactionStore per owner, kept for the app's
    lifetime so its snapshot subscription stays live.
    """
    state = request.app.state
    if state.config.backend == "local":
        return state.local_store

    stores: Dict[str, SyncedTransactionStore] = state.synced_stores
    # sync endpoints run on a threadpool; one store (and one watcher) per owner
    with state.synced_stores_lock:
        store = stores.get(user.uid)
        if store is None:
            logger.info("[deps] opening synced store for owner %r", user.uid)
            store = SyncedTransactionStore(state.collection, user.uid)
            stores[user.uid] = store
    return store


# -------------------------------------------------------------------
# Main currency (per owner, in memory)
# -------------------------------------------------------------------

def get_main_currency(
    request: Request,
    user: UserSession = Depends(get_current_user),
) -> str:
    main_currencies: Dict[str, str] = request.app.state.main_currencies
    return main_currencies.get(user.uid, request.app.state.config.main_currency)


def set_main_currency(request: Request, user: UserSession, currency: str) -> None:
    # Existing transactions keep their stored price_in_main.
    request.app.state.main_currencies[user.uid] = currency


# -------------------------------------------------------------------
# Error page
# -------------------------------------------------------------------

def render_error(request: Request, title: str, error: Exception, status_code: int = 500):
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": title, "message": str(error)},
        status_code=status_code,
    )
