"""
Wallet <-> X handle registry.

Both sides are unique at the storage layer (unique index on the wallet,
functional unique index on ``lower(handle)``). The reads below only pick the
friendly outcome; a lost race surfaces as ``IntegrityError`` at commit and is
resolved by re-reading the winner.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.link import Link
from app.services.identity import normalize_wallet

logger = logging.getLogger(__name__)

HANDLE_TAKEN_MESSAGE = "This Twitter account has already been verified with another wallet"


class LinkOutcome(str, Enum):
    already_linked_same_wallet = "already_linked_same_wallet"  # wallet already has a link
    handle_taken_by_other_wallet = "handle_taken_by_other_wallet"
    linked = "linked"


@dataclass
class LinkResult:
    outcome: LinkOutcome
    link: Optional[Link] = None


def get_link(db: Session, wallet_address: str) -> Optional[Link]:
    return db.query(Link).filter(Link.wallet_address == normalize_wallet(wallet_address)).first()


def get_link_by_handle(db: Session, handle: str) -> Optional[Link]:
    return db.query(Link).filter(func.lower(Link.twitter_handle) == handle.lower()).first()


def list_links(db: Session) -> List[Link]:
    return db.query(Link).order_by(Link.verified_at.desc(), Link.id.desc()).all()


def stage_link(db: Session, wallet_address: str, handle: str, proof_hash: str) -> LinkResult:
    """
    Add a link to the current transaction without committing.

    The caller owns the commit and must treat ``IntegrityError`` as a lost
    race (see ``resolve_conflict``).
    """
    wallet = normalize_wallet(wallet_address)

    existing = get_link(db, wallet)
    if existing:
        return LinkResult(LinkOutcome.already_linked_same_wallet, existing)

    taken = get_link_by_handle(db, handle)
    if taken:
        logger.warning("Handle @%s already linked to %s, refused for %s", handle, taken.wallet_address, wallet)
        return LinkResult(LinkOutcome.handle_taken_by_other_wallet, taken)

    link = Link(
        wallet_address=wallet,
        twitter_handle=handle,
        proof_hash=proof_hash,
        verified_at=datetime.now(timezone.utc),
    )
    db.add(link)
    return LinkResult(LinkOutcome.linked, link)


def resolve_conflict(db: Session, wallet_address: str, handle: str) -> LinkResult:
    """Re-read after a rolled back insert and report who won."""
    existing = get_link(db, wallet_address)
    if existing:
        return LinkResult(LinkOutcome.already_linked_same_wallet, existing)
    return LinkResult(LinkOutcome.handle_taken_by_other_wallet, get_link_by_handle(db, handle))


def try_link(db: Session, wallet_address: str, handle: str, proof_hash: str) -> LinkResult:
    result = stage_link(db, wallet_address, handle, proof_hash)
    if result.outcome is not LinkOutcome.linked:
        return result

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Concurrent link for %s / @%s", normalize_wallet(wallet_address), handle)
        return resolve_conflict(db, wallet_address, handle)

    db.refresh(result.link)
    logger.info("Linked @%s to wallet %s", handle, result.link.wallet_address)
    return result
