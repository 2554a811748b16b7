"""Two purchases racing for the last units of a variant never oversell it."""

import threading

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from storefront.data.database import Base
from storefront.domain.errors import InsufficientStock, StatusSeedFailure, StorageFailure
from storefront.services.duplicate_guard import InMemoryDuplicateGuard
from storefront.services.purchase_service import PurchaseService
from tests.fakes import FakeNotifier, add_product, item, stock_of


@pytest.fixture
def file_engine(tmp_path):
    # separate connections per session, unlike the shared in-memory database
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(bind=engine, autoflush=False)
    with Session() as db:
        add_product(db, 2, "Kaju Katli", [(5, "1", "120.00", 3, "kg")])
        db.commit()
    yield engine
    engine.dispose()


@pytest.fixture
def make_session(file_engine):
    Session = sessionmaker(bind=file_engine, autoflush=False)
    sessions = []

    def factory():
        session = Session()
        sessions.append(session)
        return session

    yield factory
    for session in sessions:
        session.close()


def test_interleaved_purchases_one_loses(make_session, monkeypatch):
    guard = InMemoryDuplicateGuard(window=1.5)
    winner = PurchaseService(db=make_session(), guard=guard, notifier=FakeNotifier())
    loser = PurchaseService(db=make_session(), guard=guard, notifier=FakeNotifier())

    original_lock = loser.repo.lock_weight
    winner_ids = []

    def lock_then_let_winner_commit(weight_id):
        # loser has read stock 3, winner takes 2 before the loser decrements
        row = original_lock(weight_id)
        winner_ids.append(winner.create_purchase(1, 1, 1, [item(2, 5, 2)]))
        return row

    monkeypatch.setattr(loser.repo, "lock_weight", lock_then_let_winner_commit)

    with pytest.raises(InsufficientStock):
        loser.create_purchase(2, 1, 1, [item(2, 5, 2)])

    check = make_session()
    assert stock_of(check, 5) == 1
    assert len(winner.get_all_purchases()) == 1
    assert winner.get_purchase(winner_ids[0])["user_id"] == 1


def test_threaded_purchases_never_oversell(make_session):
    guard = InMemoryDuplicateGuard(window=1.5)
    barrier = threading.Barrier(2)
    outcomes = {}

    def buy(user_id):
        service = PurchaseService(db=make_session(), guard=guard, notifier=FakeNotifier())
        barrier.wait()
        try:
            service.create_purchase(user_id, 1, 1, [item(2, 5, 2)])
            outcomes[user_id] = "ok"
        except StatusSeedFailure:
            # committed, only the status row is late
            outcomes[user_id] = "ok"
        except (InsufficientStock, StorageFailure) as e:
            outcomes[user_id] = e.code.value

    threads = [threading.Thread(target=buy, args=(user_id,)) for user_id in (1, 2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert sorted(outcomes.values()).count("ok") == 1
    assert stock_of(make_session(), 5) == 1
