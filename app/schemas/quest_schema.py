from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field, field_validator

from app.models.quest_completion import QuestStatus, QuestType
from app.schemas.base import CamelModel, check_wallet_address


class SubmitQuestRequest(CamelModel):
    wallet_address: str
    proof: Dict[str, Any]
    tweet_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("tweetUrl", "referenceLocator", "tweet_url"),
    )
    signature: str = Field(..., min_length=1)
    message: str = Field(..., min_length=1)
    timestamp: int  # epoch milliseconds, as signed

    @field_validator("wallet_address")
    @classmethod
    def valid_wallet(cls, value: str) -> str:
        return check_wallet_address(value)


class SubmitQuestResponse(CamelModel):
    success: bool
    quest_number: int
    status: QuestStatus
    message: Optional[str] = None
    result: Optional[Dict[str, Any]] = None


class QuestProgressOut(CamelModel):
    number: int
    name: str
    type: QuestType
    status: QuestStatus
    completed_at: Optional[datetime] = None
    metadata: Optional[Dict[str, Any]] = None


class ProgressOut(CamelModel):
    wallet_address: str
    handle: Optional[str] = None
    quests: List[QuestProgressOut]
