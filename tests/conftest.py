# tests/conftest.py
from __future__ import annotations

from dataclasses import replace
from types import MappingProxyType
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from db import init_db, make_session_factory
from main import create_app
from spending.config import SpendingConfig
from spending.schemas import Transaction
from spending.services.collection import TransactionCollection
from spending.services.store import LocalTransactionStore

RATES = MappingProxyType({"EUR": 1.0, "USD": 1.1, "GBP": 0.86, "JPY": 150.0})
CATEGORIES = ("Food", "Transport", "Accommodation", "Entertainment", "Shopping", "Other")
PAYMENT_METHODS = ("Cash", "Credit Card", "Debit Card", "Digital Wallet")


def make_tx(**overrides: Any) -> Transaction:
    """
    Build a Transaction with sensible defaults; any field can be overridden.
    """
    data = {
        "id": "tx-1",
        "date": "2024-01-01",
        "name": "Lunch",
        "price": 10.0,
        "currency": "EUR",
        "price_in_main": 10.0,
        "category": "Food",
        "payment_method": "Cash",
        "created_at": "2024-01-01T12:00:00+00:00",
    }
    data.update(overrides)
    return Transaction(**data)


@pytest.fixture
def config(tmp_path) -> SpendingConfig:
    return SpendingConfig(
        backend="local",
        data_file=str(tmp_path / "travel-spending-data.json"),
        main_currency="EUR",
        rates=RATES,
        categories=CATEGORIES,
        payment_methods=PAYMENT_METHODS,
    )


@pytest.fixture
def local_store(config) -> LocalTransactionStore:
    return LocalTransactionStore(config.data_file)


@pytest.fixture
def engine():
    """
    In-memory SQLite shared across sessions (StaticPool keeps one connection).
    """
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def collection(engine) -> TransactionCollection:
    return TransactionCollection(make_session_factory(engine))


@pytest.fixture
def client(config):
    with TestClient(create_app(config)) as c:
        yield c


@pytest.fixture
def synced_client(config, engine):
    app = create_app(replace(config, backend="synced"), engine=engine)
    with TestClient(app) as c:
        yield c
