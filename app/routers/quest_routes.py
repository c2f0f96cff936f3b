# routers/quest_routes.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_orchestrator
from app.schemas.quest_schema import ProgressOut, SubmitQuestRequest, SubmitQuestResponse
from app.services.orchestrator import QuestOrchestrator
from app.services.quest_machine import get_progress

router = APIRouter(prefix="/api/quest", tags=["Quests"])


@router.get("/progress/{wallet_address}", response_model=ProgressOut)
def quest_progress(wallet_address: str, db: Session = Depends(get_db)):
    return ProgressOut.model_validate(get_progress(db, wallet_address))


@router.post("/{quest_number}/submit", response_model=SubmitQuestResponse)
def submit_quest(
    quest_number: int,
    payload: SubmitQuestRequest,
    orchestrator: QuestOrchestrator = Depends(get_orchestrator),
):
    return orchestrator.submit(
        quest_number=quest_number,
        wallet_address=payload.wallet_address,
        proof=payload.proof,
        signature=payload.signature,
        message=payload.message,
        timestamp=payload.timestamp,
        tweet_url=payload.tweet_url,
    )
