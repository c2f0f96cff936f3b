from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from app.database import Base


class QuestType(str, Enum):
    profile = "profile"
    authorship = "authorship"
    engagement = "engagement"


class QuestStatus(str, Enum):
    locked = "locked"            # derived only, never stored
    pending = "pending"          # derived only, never stored
    in_progress = "in_progress"
    completed = "completed"
    failed = "failed"


class QuestCompletion(Base):
    __tablename__ = "quest_completions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    quest_number = Column(Integer, nullable=False, index=True)
    quest_type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False, default=QuestStatus.pending.value)
    proof_hash = Column(String(64), nullable=True)
    quest_metadata = Column("metadata", JSON, nullable=True)
    verification_result = Column(JSON, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="quest_completions")

    __table_args__ = (UniqueConstraint("user_id", "quest_number", name="_user_quest_number_uc"),)
