# utils/hashing.py
import hashlib
import json
from typing import Any


def canonical_json(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def proof_hash(proof: Any) -> str:
    """sha256 hex of the proof's canonical JSON. Audit trail only."""
    return hashlib.sha256(canonical_json(proof).encode("utf-8")).hexdigest()


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
