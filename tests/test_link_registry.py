from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from app.database import Base, make_engine
from app.models.link import Link
from app.services import link_registry
from app.services.link_registry import LinkOutcome

WALLET_A = "0x" + "a" * 40
WALLET_B = "0x" + "b" * 40


def test_first_link_is_created(db):
    result = link_registry.try_link(db, WALLET_A.upper().replace("0X", "0x"), "alice", "h1")
    assert result.outcome is LinkOutcome.linked
    assert result.link.id is not None
    assert result.link.wallet_address == WALLET_A


def test_relinking_same_wallet_returns_existing(db):
    link_registry.try_link(db, WALLET_A, "alice", "h1")
    result = link_registry.try_link(db, WALLET_A, "someone_else", "h2")
    assert result.outcome is LinkOutcome.already_linked_same_wallet
    assert result.link.twitter_handle == "alice"
    assert db.query(Link).count() == 1


def test_handle_taken_by_other_wallet_is_case_insensitive(db):
    link_registry.try_link(db, WALLET_A, "alice", "h1")
    result = link_registry.try_link(db, WALLET_B, "ALICE", "h2")
    assert result.outcome is LinkOutcome.handle_taken_by_other_wallet
    assert result.link.wallet_address == WALLET_A
    assert link_registry.get_link(db, WALLET_B) is None


def test_storage_rejects_duplicate_handle(db):
    now = datetime.now(timezone.utc)
    db.add(Link(wallet_address=WALLET_A, twitter_handle="alice", proof_hash="h1", verified_at=now))
    db.commit()

    db.add(Link(wallet_address=WALLET_B, twitter_handle="Alice", proof_hash="h2", verified_at=now))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()

    result = link_registry.resolve_conflict(db, WALLET_B, "Alice")
    assert result.outcome is LinkOutcome.handle_taken_by_other_wallet
    assert result.link.wallet_address == WALLET_A


def test_lost_race_resolves_to_existing_link(tmp_path):
    # two connections: the second writer passed its checks before the first committed
    engine = make_engine(f"sqlite:///{tmp_path / 'race.db'}")
    Base.metadata.create_all(bind=engine)
    session_factory = sessionmaker(bind=engine, autoflush=False)
    db = session_factory()

    staged = link_registry.stage_link(db, WALLET_A, "alice", "h1")
    assert staged.outcome is LinkOutcome.linked

    other = session_factory()
    assert link_registry.try_link(other, WALLET_A, "alice", "h0").outcome is LinkOutcome.linked
    other.close()

    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
    result = link_registry.resolve_conflict(db, WALLET_A, "alice")
    assert result.outcome is LinkOutcome.already_linked_same_wallet
    assert result.link.proof_hash == "h0"
    db.close()
    engine.dispose()


def test_list_links_newest_first(db):
    link_registry.try_link(db, WALLET_A, "alice", "h1")
    link_registry.try_link(db, WALLET_B, "bob", "h2")
    handles = [link.twitter_handle for link in link_registry.list_links(db)]
    assert handles == ["bob", "alice"]
