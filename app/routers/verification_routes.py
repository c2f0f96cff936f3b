from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_verifier_client, require_operator
from app.schemas.link_schema import LinkCheckOut, LinkListOut, LinkOut, LinkResponse, LinkSaveRequest, LinkSubmitRequest
from app.services import link_registry
from app.services.linking import save_link, submit_link
from app.services.verifier_client import VerifierClient

router = APIRouter(prefix="/api/verification", tags=["Verification"])


@router.post("/submit", response_model=LinkResponse)
def submit_proof(
    payload: LinkSubmitRequest,
    db: Session = Depends(get_db),
    verifier: VerifierClient = Depends(get_verifier_client),
):
    return submit_link(db, verifier, payload.wallet_address, payload.proof)


@router.post("/save", response_model=LinkResponse, dependencies=[Depends(require_operator)])
def save_verification(payload: LinkSaveRequest, db: Session = Depends(get_db)):
    return save_link(db, payload.wallet_address, payload.handle, payload.session_id)


@router.get("/check/{wallet_address}", response_model=LinkCheckOut)
def check_verification(wallet_address: str, db: Session = Depends(get_db)):
    link = link_registry.get_link(db, wallet_address)
    if not link:
        raise HTTPException(status_code=404, detail="No verification found for this wallet")
    return LinkCheckOut(verified=True, handle=link.twitter_handle, verified_at=link.verified_at)


@router.get("/list", response_model=LinkListOut)
def list_verifications(db: Session = Depends(get_db)):
    links = link_registry.list_links(db)
    return LinkListOut(count=len(links), links=[LinkOut.model_validate(link) for link in links])


@router.get("/health")
def health_check():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
