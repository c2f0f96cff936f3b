"""
Per-user quest ledger.

``locked`` and ``pending`` are never stored: they are derived from the
prerequisites when a quest has no row yet. Stored rows move between
``failed`` and ``completed``; ``completed`` is terminal.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set

from sqlalchemy.orm import Session

from app.core.errors import InvalidQuestError
from app.models.quest_completion import QuestCompletion, QuestStatus, QuestType
from app.models.user import User
from app.services.identity import get_user, normalize_wallet


@dataclass(frozen=True)
class QuestDefinition:
    number: int
    type: QuestType
    name: str
    prerequisites: List[int] = field(default_factory=list)

    @property
    def needs_tweet(self) -> bool:
        return self.type in (QuestType.authorship, QuestType.engagement)


QUESTS: Dict[int, QuestDefinition] = {
    1: QuestDefinition(1, QuestType.profile, "Verify Twitter Profile"),
    2: QuestDefinition(2, QuestType.authorship, "Verify Tweet Authorship", [1]),
    3: QuestDefinition(3, QuestType.engagement, "Verify Like & Retweet", [1]),
}


def get_definition(quest_number: int) -> QuestDefinition:
    definition = QUESTS.get(quest_number)
    if definition is None:
        raise InvalidQuestError()
    return definition


def completed_numbers(db: Session, user_id: int) -> Set[int]:
    rows = (
        db.query(QuestCompletion.quest_number)
        .filter(QuestCompletion.user_id == user_id, QuestCompletion.status == QuestStatus.completed.value)
        .all()
    )
    return {number for (number,) in rows}


def missing_prerequisite(definition: QuestDefinition, completed: Set[int]) -> Optional[int]:
    for prereq in definition.prerequisites:
        if prereq not in completed:
            return prereq
    return None


def get_completion(db: Session, user_id: int, quest_number: int) -> Optional[QuestCompletion]:
    return (
        db.query(QuestCompletion)
        .filter(QuestCompletion.user_id == user_id, QuestCompletion.quest_number == quest_number)
        .first()
    )


def derive_status(
    definition: QuestDefinition,
    completion: Optional[QuestCompletion],
    completed: Set[int],
) -> QuestStatus:
    if completion is not None:
        return QuestStatus(completion.status)
    if missing_prerequisite(definition, completed) is None:
        return QuestStatus.pending
    return QuestStatus.locked


def get_progress(db: Session, wallet_address: str) -> Dict[str, Any]:
    """Read-only view of quests 1..3 for a wallet. Unknown wallets are not created."""
    normalized = normalize_wallet(wallet_address)
    user = get_user(db, normalized)
    rows = {c.quest_number: c for c in user.quest_completions} if user else {}
    completed = {n for n, c in rows.items() if c.status == QuestStatus.completed.value}

    quests = []
    for number in sorted(QUESTS):
        definition = QUESTS[number]
        completion = rows.get(number)
        quests.append({
            "number": number,
            "name": definition.name,
            "type": definition.type,
            "status": derive_status(definition, completion, completed),
            "completed_at": completion.completed_at if completion else None,
            "metadata": completion.quest_metadata if completion else None,
        })

    return {
        "wallet_address": normalized,
        "handle": user.twitter_handle if user else None,
        "quests": quests,
    }


def _get_or_add_row(db: Session, user: User, definition: QuestDefinition) -> QuestCompletion:
    row = get_completion(db, user.id, definition.number)
    if row is None:
        row = QuestCompletion(
            user_id=user.id,
            quest_number=definition.number,
            quest_type=definition.type.value,
        )
        db.add(row)
    return row


def stage_completed(
    db: Session,
    user: User,
    definition: QuestDefinition,
    proof_hash: str,
    metadata: Dict[str, Any],
    result: Dict[str, Any],
) -> QuestCompletion:
    """Mark the quest completed in the current transaction. Caller commits."""
    row = _get_or_add_row(db, user, definition)
    if row.status == QuestStatus.completed.value:
        return row

    row.status = QuestStatus.completed.value
    row.proof_hash = proof_hash
    row.quest_metadata = metadata
    row.verification_result = result
    row.completed_at = datetime.now(timezone.utc)
    return row


def stage_failed(db: Session, user: User, definition: QuestDefinition, proof_hash: str) -> QuestCompletion:
    """Record a rejected attempt. Never downgrades a completed row. Caller commits."""
    row = _get_or_add_row(db, user, definition)
    if row.status == QuestStatus.completed.value:
        return row

    row.status = QuestStatus.failed.value
    row.proof_hash = proof_hash
    row.quest_metadata = None
    row.verification_result = None
    row.completed_at = None
    return row
