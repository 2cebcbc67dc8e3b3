import pytest

from db import Base, make_session_factory
from spending.errors import DuplicateTransactionError, PersistenceError, TransactionNotFoundError
from spending.services.collection import TransactionCollection
from spending.services.store import SyncedTransactionStore
from tests.conftest import make_tx


@pytest.fixture
def alice(collection):
    store = SyncedTransactionStore(collection, "alice")
    yield store
    store.close()


@pytest.fixture
def bob(collection):
    store = SyncedTransactionStore(collection, "bob")
    yield store
    store.close()


def test_add_stamps_owner_and_shows_up_in_snapshot(alice, collection):
    alice.add(make_tx(id="a"))

    assert [tx.id for tx in alice.list()] == ["a"]
    assert alice.list()[0].owner == "alice"
    assert collection.snapshot()[0].owner == "alice"


def test_list_is_scoped_to_owner(alice, bob):
    alice.add(make_tx(id="a1"))
    bob.add(make_tx(id="b1"))
    alice.add(make_tx(id="a2"))

    assert [tx.id for tx in alice.list()] == ["a1", "a2"]
    assert [tx.id for tx in bob.list()] == ["b1"]


def test_new_store_sees_existing_documents(collection, alice):
    alice.add(make_tx(id="a"))

    late = SyncedTransactionStore(collection, "alice")
    assert [tx.id for tx in late.list()] == ["a"]
    late.close()


def test_update_is_full_replace(alice):
    alice.add(make_tx(id="a", name="Lunch", category="Food"))

    alice.update("a", make_tx(id="a", name="Brunch", category="", price=12, price_in_main=12))

    [tx] = alice.list()
    assert (tx.name, tx.category, tx.price) == ("Brunch", "", 12.0)
    assert tx.owner == "alice"


def test_update_unknown_id(alice):
    with pytest.raises(TransactionNotFoundError):
        alice.update("missing", make_tx(id="missing"))


def test_cannot_touch_another_owners_document(alice, bob):
    bob.add(make_tx(id="b1", name="Hotel"))

    with pytest.raises(PersistenceError):
        alice.update("b1", make_tx(id="b1", name="Hijacked"))
    with pytest.raises(PersistenceError):
        alice.remove("b1")

    assert bob.get("b1").name == "Hotel"


def test_remove_deletes_exactly_one(alice):
    alice.add_many([make_tx(id="a"), make_tx(id="b"), make_tx(id="c")])

    alice.remove("b")

    assert [tx.id for tx in alice.list()] == ["a", "c"]


def test_remove_unknown_id_is_noop(alice):
    alice.add(make_tx(id="a"))
    alice.remove("zzz")
    assert [tx.id for tx in alice.list()] == ["a"]


def test_duplicate_id_rejected(alice, bob):
    alice.add(make_tx(id="a"))

    with pytest.raises(DuplicateTransactionError):
        bob.add(make_tx(id="a"))
    assert bob.list() == []


def test_failed_write_leaves_snapshot_unchanged(alice, engine):
    alice.add(make_tx(id="a"))
    Base.metadata.drop_all(bind=engine)

    with pytest.raises(PersistenceError):
        alice.add(make_tx(id="b"))

    assert [tx.id for tx in alice.list()] == ["a"]


def test_subscribers_receive_pushed_snapshots(alice, bob):
    seen = []
    alice.subscribe(lambda txs: seen.append([tx.id for tx in txs]))

    alice.add(make_tx(id="a"))
    bob.add(make_tx(id="b"))

    # bob's write pushes a snapshot too, but alice's view is unchanged by it
    assert seen == [[], ["a"]]


def test_collection_unwatch(collection):
    seen = []
    unwatch = collection.watch(lambda docs: seen.append(len(docs)))
    collection.create(make_tx(id="a", owner="alice"))
    unwatch()
    collection.create(make_tx(id="b", owner="alice"))

    assert seen == [0, 1]


def test_sees_writes_from_another_collection(engine, alice):
    # e.g. the migration script or a second worker on the same database
    other = TransactionCollection(make_session_factory(engine))
    other.create(make_tx(id="m1", owner="alice"))
    other.create(make_tx(id="m2", owner="bob"))

    assert [tx.id for tx in alice.list()] == ["m1"]
    assert alice.get("m1").owner == "alice"


def test_refresh_notifies_subscribers_only_on_change(engine, alice):
    seen = []
    alice.subscribe(lambda txs: seen.append([tx.id for tx in txs]))

    TransactionCollection(make_session_factory(engine)).create(make_tx(id="m1", owner="alice"))
    alice.refresh()
    alice.refresh()

    assert seen == [[], ["m1"]]


def test_refresh_failure_keeps_last_snapshot(alice, engine):
    alice.add(make_tx(id="a"))
    Base.metadata.drop_all(bind=engine)

    alice.refresh()

    assert [tx.id for tx in alice.list()] == ["a"]
