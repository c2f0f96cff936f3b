import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from app.core.config import VerifierConfig
from app.core.errors import VerifierUnavailableError
from app.models.quest_completion import QuestType
from app.schemas.verifier import VerifierVerdict

logger = logging.getLogger(__name__)


class VerifierClient:
    """
    Thin client for the external proof verifier.

    One POST per call, no retries. Anything other than a well-formed verdict
    (timeout, connection error, non-2xx, bad JSON) raises
    ``VerifierUnavailableError`` so callers can tell "could not ask" apart
    from "proof rejected".
    """

    def __init__(self, config: VerifierConfig, http: Optional[httpx.Client] = None):
        self.config = config
        self._http = http or httpx.Client(timeout=config.timeout_seconds)

    @property
    def verify_url(self) -> str:
        return f"{self.config.base_url}/verify"

    def verify(
        self,
        proof: Any,
        quest_type: Optional[QuestType] = None,
        tweet_url: Optional[str] = None,
        expected_author: Optional[str] = None,
    ) -> VerifierVerdict:
        body: dict[str, Any] = {"proof": proof}
        if quest_type is not None:
            body["questType"] = quest_type.value
        if tweet_url is not None:
            body["expectedData"] = {"tweetUrl": tweet_url, "expectedAuthor": expected_author}

        logger.info("Sending %s proof to verifier at %s", body.get("questType", "profile"), self.verify_url)
        try:
            res = self._http.post(self.verify_url, json=body, timeout=self.config.timeout_seconds)
            res.raise_for_status()
            return VerifierVerdict.model_validate(res.json())
        except httpx.TimeoutException as e:
            logger.error("Verifier timed out after %ss", self.config.timeout_seconds, exc_info=True)
            raise VerifierUnavailableError() from e
        except httpx.HTTPStatusError as e:
            logger.error("Verifier answered %s: %s", e.response.status_code, e.response.text[:200])
            raise VerifierUnavailableError() from e
        except httpx.HTTPError as e:
            logger.error("Verifier transport error: %s", e, exc_info=True)
            raise VerifierUnavailableError() from e
        except (ValueError, ValidationError) as e:
            # json decode errors are ValueErrors
            logger.error("Malformed verifier response: %s", e)
            raise VerifierUnavailableError() from e

    def close(self) -> None:
        self._http.close()
