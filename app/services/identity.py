import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.user import User

logger = logging.getLogger(__name__)


def normalize_wallet(address: str) -> str:
    return address.strip().lower()


def get_user(db: Session, wallet_address: str) -> Optional[User]:
    return db.query(User).filter(User.wallet_address == normalize_wallet(wallet_address)).first()


def get_or_create_user(db: Session, wallet_address: str) -> User:
    normalized = normalize_wallet(wallet_address)
    user = get_user(db, normalized)
    if user:
        return user

    db.add(User(wallet_address=normalized))
    try:
        db.commit()
    except IntegrityError:
        # another request created it first
        db.rollback()
        return get_user(db, normalized)

    logger.info("Created new user for wallet %s", normalized)
    return get_user(db, normalized)
