"""
Quest submission pipeline.

    signature -> user -> prerequisites / already completed -> verifier
              -> per-type interpretation -> one commit

Client mistakes raise ``ClientError``; an unreachable verifier raises
``VerifierUnavailableError`` before anything about the quest is written.
Everything else comes back as a ``SubmitQuestResponse``.
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.auth.signature import authenticate
from app.core.config import SignatureConfig
from app.core.errors import ReferenceRequiredError
from app.models.quest_completion import QuestCompletion, QuestStatus, QuestType
from app.models.user import User
from app.schemas.quest_schema import SubmitQuestResponse
from app.services import link_registry
from app.services.identity import get_or_create_user
from app.services.interpreters import Interpretation, QuestContext, interpret
from app.services.link_registry import HANDLE_TAKEN_MESSAGE, LinkOutcome
from app.services.quest_machine import (
    QuestDefinition,
    completed_numbers,
    get_completion,
    get_definition,
    missing_prerequisite,
    stage_completed,
    stage_failed,
)
from app.services.verifier_client import VerifierClient
from app.utils.hashing import proof_hash

logger = logging.getLogger(__name__)

RETRY_MESSAGE = "Another submission for this quest was in progress. Please try again."


class QuestOrchestrator:
    def __init__(self, db: Session, verifier: VerifierClient, signature_config: SignatureConfig):
        self.db = db
        self.verifier = verifier
        self.signature_config = signature_config

    def submit(
        self,
        quest_number: int,
        wallet_address: str,
        proof: Dict[str, Any],
        signature: str,
        message: str,
        timestamp: int,
        tweet_url: Optional[str] = None,
    ) -> SubmitQuestResponse:
        definition = get_definition(quest_number)

        # 1. Wallet ownership, before touching the database
        check = authenticate(wallet_address, signature, message, timestamp, self.signature_config)
        if not check.valid:
            return self._failed(quest_number, check.reason)

        # 2. Identity
        user = get_or_create_user(self.db, wallet_address)

        # 3. Prerequisites
        prereq = missing_prerequisite(definition, completed_numbers(self.db, user.id))
        if prereq is not None:
            return self._failed(quest_number, f"Must complete Quest {prereq} first")

        # 4. Complete-once
        existing = get_completion(self.db, user.id, quest_number)
        if existing is not None and existing.status == QuestStatus.completed.value:
            return self._already_completed(existing)

        if definition.needs_tweet and not tweet_url:
            raise ReferenceRequiredError()

        # 5. External verification
        logger.info("Verifying quest %s for wallet %s", quest_number, user.wallet_address)
        linked_handle = user.twitter_handle
        if definition.needs_tweet:
            verdict = self.verifier.verify(proof, definition.type, tweet_url, linked_handle)
        else:
            verdict = self.verifier.verify(proof, definition.type)

        digest = proof_hash(proof)
        outcome = interpret(definition.type, verdict, QuestContext(tweet_url=tweet_url, linked_handle=linked_handle))
        if not outcome.ok:
            return self._record_failure(user, definition, digest, outcome.message)

        return self._record_success(user, definition, digest, outcome)

    # ---------- persistence ----------

    def _record_success(
        self,
        user: User,
        definition: QuestDefinition,
        digest: str,
        outcome: Interpretation,
    ) -> SubmitQuestResponse:
        user_id, wallet = user.id, user.wallet_address

        # a lost race against a failed row is staged again once
        for attempt in range(2):
            if definition.type is QuestType.profile:
                conflict = self._stage_profile(user, outcome.handle, digest)
                if conflict:
                    return self._record_failure(user, definition, digest, conflict)

            stage_completed(self.db, user, definition, digest, outcome.metadata, outcome.result)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                row = get_completion(self.db, user_id, definition.number)
                if row is not None and row.status == QuestStatus.completed.value:
                    # a concurrent submission for the same quest won
                    return self._already_completed(row)
                logger.warning(
                    "Concurrent write on quest %s for wallet %s (attempt %s)",
                    definition.number,
                    wallet,
                    attempt + 1,
                )
                user = self.db.get(User, user_id)
                continue

            logger.info("Quest %s completed for wallet %s", definition.number, wallet)
            return SubmitQuestResponse(
                success=True,
                quest_number=definition.number,
                status=QuestStatus.completed,
                result=outcome.result,
            )

        return self._failed(definition.number, RETRY_MESSAGE)

    def _stage_profile(self, user: User, handle: str, digest: str) -> Optional[str]:
        """Stage link + user handle. Returns a failure message on conflict."""
        owner = (
            self.db.query(User)
            .filter(func.lower(User.twitter_handle) == handle.lower(), User.id != user.id)
            .first()
        )
        if owner is not None:
            return HANDLE_TAKEN_MESSAGE

        link = link_registry.stage_link(self.db, user.wallet_address, handle, digest)
        if link.outcome is LinkOutcome.handle_taken_by_other_wallet:
            return HANDLE_TAKEN_MESSAGE
        if (
            link.outcome is LinkOutcome.already_linked_same_wallet
            and link.link.twitter_handle.lower() != handle.lower()
        ):
            return f"Wallet is already linked to @{link.link.twitter_handle}"

        # first write wins
        if user.twitter_handle is None:
            user.twitter_handle = handle
        return None

    def _record_failure(
        self,
        user: User,
        definition: QuestDefinition,
        digest: str,
        message: str,
    ) -> SubmitQuestResponse:
        user_id, wallet = user.id, user.wallet_address
        stage_failed(self.db, user, definition, digest)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            row = get_completion(self.db, user_id, definition.number)
            if row is not None and row.status == QuestStatus.completed.value:
                return self._already_completed(row)

        logger.warning("Quest %s failed for wallet %s: %s", definition.number, wallet, message)
        return self._failed(definition.number, message)

    # ---------- responses ----------

    @staticmethod
    def _failed(quest_number: int, message: Optional[str]) -> SubmitQuestResponse:
        return SubmitQuestResponse(
            success=False,
            quest_number=quest_number,
            status=QuestStatus.failed,
            message=message,
        )

    @staticmethod
    def _already_completed(row: QuestCompletion) -> SubmitQuestResponse:
        return SubmitQuestResponse(
            success=True,
            quest_number=row.quest_number,
            status=QuestStatus.completed,
            message="Quest already completed",
            result=row.verification_result,
        )
