"""Bare wallet <-> X account linking, independent of the quest ledger."""
import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from app.schemas.link_schema import LinkResponse
from app.services import link_registry
from app.services.link_registry import HANDLE_TAKEN_MESSAGE, LinkOutcome, LinkResult
from app.services.verifier_client import VerifierClient
from app.utils.hashing import proof_hash, sha256_hex

logger = logging.getLogger(__name__)


def _already_verified(link) -> LinkResponse:
    return LinkResponse(
        success=True,
        handle=link.twitter_handle,
        link_id=link.id,
        message="Already verified",
    )


def _to_response(result: LinkResult) -> LinkResponse:
    if result.outcome is LinkOutcome.handle_taken_by_other_wallet:
        return LinkResponse(success=False, message=HANDLE_TAKEN_MESSAGE)
    if result.outcome is LinkOutcome.already_linked_same_wallet:
        return _already_verified(result.link)
    return LinkResponse(success=True, handle=result.link.twitter_handle, link_id=result.link.id)


def submit_link(db: Session, verifier: VerifierClient, wallet_address: str, proof: Dict[str, Any]) -> LinkResponse:
    existing = link_registry.get_link(db, wallet_address)
    if existing:
        return _already_verified(existing)

    verdict = verifier.verify(proof)
    if not verdict.valid:
        logger.warning("Proof verification failed for %s: %s", wallet_address.lower(), verdict.error)
        return LinkResponse(success=False, message=verdict.error or "Proof verification failed")

    handle = (verdict.twitter_handle or "").strip().lstrip("@")
    if not handle:
        return LinkResponse(success=False, message="Could not extract Twitter handle from proof")

    return _to_response(link_registry.try_link(db, wallet_address, handle, proof_hash(proof)))


def save_link(db: Session, wallet_address: str, handle: str, session_id: str) -> LinkResponse:
    """Operator path: the handle was verified out of band, the verifier is not called."""
    existing = link_registry.get_link(db, wallet_address)
    if existing:
        return _already_verified(existing)

    logger.info("Manual link requested for %s -> @%s", wallet_address.lower(), handle)
    return _to_response(link_registry.try_link(db, wallet_address, handle, sha256_hex(session_id)))
