"""
Turn a verifier verdict into what gets stored for a quest.

One function per quest type, all with the same shape, so the orchestrator
never branches on quest number.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from app.models.quest_completion import QuestType
from app.schemas.verifier import VerifierVerdict


@dataclass(frozen=True)
class QuestContext:
    tweet_url: Optional[str] = None
    linked_handle: Optional[str] = None


@dataclass
class Interpretation:
    ok: bool
    message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    result: Dict[str, Any] = field(default_factory=dict)
    handle: Optional[str] = None  # profile only

    @classmethod
    def fail(cls, message: str) -> "Interpretation":
        return cls(ok=False, message=message)


def interpret_profile(verdict: VerifierVerdict, ctx: QuestContext) -> Interpretation:
    handle = (verdict.twitter_handle or "").strip().lstrip("@")
    if not handle:
        return Interpretation.fail("Could not extract Twitter handle")
    return Interpretation(
        ok=True,
        metadata={"handle": handle},
        result={"handle": handle},
        handle=handle,
    )


def interpret_authorship(verdict: VerifierVerdict, ctx: QuestContext) -> Interpretation:
    author = verdict.author_screen_name or ""
    expected = ctx.linked_handle or ""
    if not expected or author.lower() != expected.lower():
        return Interpretation.fail(f"Tweet was not authored by @{expected}")
    return Interpretation(
        ok=True,
        metadata={
            "tweetId": verdict.tweet_id,
            "tweetUrl": ctx.tweet_url,
            "tweetText": verdict.tweet_text,
            "authorHandle": author,
        },
        result={"tweetId": verdict.tweet_id, "authorVerified": True},
    )


def interpret_engagement(verdict: VerifierVerdict, ctx: QuestContext) -> Interpretation:
    missing = []
    if not verdict.like_verified:
        missing.append("like")
    if not verdict.retweet_verified:
        missing.append("retweet")
    if missing:
        return Interpretation.fail(f"Missing engagement: {', '.join(missing)}")
    return Interpretation(
        ok=True,
        metadata={
            "tweetId": verdict.tweet_id,
            "tweetUrl": ctx.tweet_url,
            "likeVerified": True,
            "retweetVerified": True,
        },
        result={"tweetId": verdict.tweet_id, "likeVerified": True, "retweetVerified": True},
    )


INTERPRETERS: Dict[QuestType, Callable[[VerifierVerdict, QuestContext], Interpretation]] = {
    QuestType.profile: interpret_profile,
    QuestType.authorship: interpret_authorship,
    QuestType.engagement: interpret_engagement,
}


def interpret(quest_type: QuestType, verdict: VerifierVerdict, ctx: QuestContext) -> Interpretation:
    if not verdict.valid:
        return Interpretation.fail(verdict.error or "Proof verification failed")
    return INTERPRETERS[quest_type](verdict, ctx)
