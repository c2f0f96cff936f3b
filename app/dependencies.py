from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from app.core.config import Settings, settings
from app.database import get_db
from app.services.orchestrator import QuestOrchestrator
from app.services.verifier_client import VerifierClient


def get_settings() -> Settings:
    return settings


@lru_cache(maxsize=1)
def _shared_verifier_client() -> VerifierClient:
    return VerifierClient(settings.verifier_config())


def get_verifier_client() -> VerifierClient:
    return _shared_verifier_client()


def close_verifier_client() -> None:
    if _shared_verifier_client.cache_info().currsize:
        _shared_verifier_client().close()
        _shared_verifier_client.cache_clear()


def get_orchestrator(
    db: Session = Depends(get_db),
    verifier: VerifierClient = Depends(get_verifier_client),
    config: Settings = Depends(get_settings),
) -> QuestOrchestrator:
    return QuestOrchestrator(db, verifier, config.signature_config())


def require_operator(
    x_operator_key: Optional[str] = Header(default=None),
    config: Settings = Depends(get_settings),
) -> None:
    """Guard for the manual linking path. Open when no key is configured."""
    if not config.OPERATOR_API_KEY:
        return
    if x_operator_key != config.OPERATOR_API_KEY:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid operator key")
