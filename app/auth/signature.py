# app/auth/signature.py
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from eth_account import Account
from eth_account.messages import encode_defunct

from app.core.config import SignatureConfig

logger = logging.getLogger(__name__)


class SignatureFailure(str, Enum):
    EXPIRED = "EXPIRED"
    MALFORMED_MESSAGE = "MALFORMED_MESSAGE"
    BAD_SIGNATURE = "BAD_SIGNATURE"


FAILURE_MESSAGES = {
    SignatureFailure.EXPIRED: "Signature expired. Please try again.",
    SignatureFailure.MALFORMED_MESSAGE: "Invalid message format",
    SignatureFailure.BAD_SIGNATURE: "Invalid signature",
}


@dataclass(frozen=True)
class SignatureCheck:
    valid: bool
    failure: Optional[SignatureFailure] = None

    @property
    def reason(self) -> Optional[str]:
        return FAILURE_MESSAGES[self.failure] if self.failure else None


def expected_message(wallet_address: str, timestamp: int, title: str) -> str:
    return f"{title}\nWallet: {wallet_address.lower()}\nTimestamp: {timestamp}"


def authenticate(
    wallet_address: str,
    signature: str,
    message: str,
    timestamp: int,
    config: SignatureConfig,
    now_ms: Optional[int] = None,
) -> SignatureCheck:
    """
    Check that ``message`` was signed by ``wallet_address`` (EIP-191 personal_sign)
    within the freshness window.

    ``timestamp`` and ``now_ms`` are epoch milliseconds. Pure function: no I/O.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)

    # 1) Freshness window
    if abs(now_ms - timestamp) > config.validity_seconds * 1000:
        logger.warning("Expired signature for %s (ts=%s)", wallet_address.lower(), timestamp)
        return SignatureCheck(False, SignatureFailure.EXPIRED)

    # 2) The signed text must be exactly our template
    if message != expected_message(wallet_address, timestamp, config.title):
        logger.warning("Unexpected signed message for %s", wallet_address.lower())
        return SignatureCheck(False, SignatureFailure.MALFORMED_MESSAGE)

    # 3) Recover signer and compare
    try:
        recovered = Account.recover_message(encode_defunct(text=message), signature=signature)
    except Exception as e:
        # bad hex, wrong length, invalid v/r/s: all just an invalid signature
        logger.warning("Signature recovery failed for %s: %s", wallet_address.lower(), e)
        return SignatureCheck(False, SignatureFailure.BAD_SIGNATURE)

    if recovered.lower() != wallet_address.lower():
        logger.warning("Signature for %s was made by %s", wallet_address.lower(), recovered.lower())
        return SignatureCheck(False, SignatureFailure.BAD_SIGNATURE)

    logger.info("Wallet signature verified for %s", wallet_address.lower())
    return SignatureCheck(True)
