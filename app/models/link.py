from sqlalchemy import Column, DateTime, Index, Integer, String, func

from app.database import Base


class Link(Base):
    """One wallet bound to one X account. Rows are never updated."""

    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True)
    wallet_address = Column(String(42), unique=True, index=True, nullable=False)
    twitter_handle = Column(String(64), nullable=False)
    proof_hash = Column(String(64), nullable=False)
    verified_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


Index("uq_links_twitter_handle_lower", func.lower(Link.twitter_handle), unique=True)
