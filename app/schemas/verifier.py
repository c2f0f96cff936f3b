from typing import Optional

from pydantic import BaseModel, ConfigDict


class VerifierVerdict(BaseModel):
    """Response body of ``POST {VERIFIER_URL}/verify`` (snake_case on the wire)."""

    model_config = ConfigDict(extra="ignore")

    valid: bool
    twitter_handle: Optional[str] = None
    tweet_id: Optional[str] = None
    author_screen_name: Optional[str] = None
    tweet_text: Optional[str] = None
    like_verified: Optional[bool] = None
    retweet_verified: Optional[bool] = None
    error: Optional[str] = None
