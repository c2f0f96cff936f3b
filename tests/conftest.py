from __future__ import annotations

import json
import time
from typing import Any, Optional

import httpx
import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth.signature import expected_message
from app.core.config import SignatureConfig, VerifierConfig
from app.database import Base, get_db, make_engine
from app.dependencies import get_verifier_client
from app.main import app
from app.services.verifier_client import VerifierClient

ALICE_KEY = "0x" + "11" * 32
BOB_KEY = "0x" + "22" * 32
SIGNATURE_CONFIG = SignatureConfig()


class TestWallet:
    __test__ = False

    def __init__(self, private_key: str):
        self.account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self.account.address  # checksummed, mixed case

    def sign(self, timestamp: Optional[int] = None, message: Optional[str] = None) -> dict[str, Any]:
        ts = int(time.time() * 1000) if timestamp is None else timestamp
        text = expected_message(self.address, ts, SIGNATURE_CONFIG.title) if message is None else message
        signed = self.account.sign_message(encode_defunct(text=text))
        return {"signature": "0x" + bytes(signed.signature).hex(), "message": text, "timestamp": ts}


class VerifierStub:
    """Stands in for the proof verifier behind an httpx.MockTransport."""

    def __init__(self) -> None:
        self.verdicts: list[dict[str, Any]] = []
        self.requests: list[dict[str, Any]] = []
        self.error: Optional[Exception] = None
        self.status_code = 200

    def queue(self, **verdict: Any) -> None:
        self.verdicts.append(verdict)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.error is not None:
            raise self.error
        if self.status_code != 200:
            return httpx.Response(self.status_code, text="upstream exploded")
        return httpx.Response(200, json=self.verdicts.pop(0))


@pytest.fixture
def engine():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def verifier_stub() -> VerifierStub:
    return VerifierStub()


@pytest.fixture
def verifier(verifier_stub) -> VerifierClient:
    http = httpx.Client(transport=httpx.MockTransport(verifier_stub.handler))
    client = VerifierClient(VerifierConfig(base_url="http://verifier.test", timeout_seconds=30), http=http)
    yield client
    client.close()


@pytest.fixture
def client(session_factory, verifier):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_verifier_client] = lambda: verifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def alice() -> TestWallet:
    return TestWallet(ALICE_KEY)


@pytest.fixture
def bob() -> TestWallet:
    return TestWallet(BOB_KEY)


def submit(client: TestClient, wallet: TestWallet, quest_number: int, proof: Optional[dict] = None, **extra: Any):
    body = {
        "walletAddress": wallet.address,
        "proof": proof or {"version": "0.1", "data": f"proof-{quest_number}"},
        **wallet.sign(),
        **extra,
    }
    return client.post(f"/api/quest/{quest_number}/submit", json=body)
