# models/user.py
from sqlalchemy import Column, DateTime, Index, Integer, String, func
from sqlalchemy.orm import relationship

from app.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    wallet_address = Column(String(42), unique=True, index=True, nullable=False)  # always lower-case
    twitter_handle = Column(String(64), nullable=True)                           # set by quest 1 only
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    quest_completions = relationship(
        "QuestCompletion",
        back_populates="user",
        order_by="QuestCompletion.quest_number",
    )


# Handles are case-insensitive on X, so uniqueness is too
Index("uq_users_twitter_handle_lower", func.lower(User.twitter_handle), unique=True)
