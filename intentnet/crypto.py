"""Cryptographic helpers: intent identifiers, intent hashes and hash checks."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import secrets
import time
from dataclasses import dataclass
from typing import Any

from intentnet.types import Intent

_JSON_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


@dataclass
class CryptoConfig:
    """Settings of the crypto helpers."""

    hash_algorithm: str = "sha256"
    encryption_enabled: bool = False
    random_seed_enabled: bool = False


def generate_intent_id() -> str:
    """Return a fresh 32-character hexadecimal intent identifier."""
    data = str(time.time_ns()).encode() + secrets.token_bytes(8)
    return hashlib.sha256(data).digest()[:16].hex()


def _encode_payload(payload: Any) -> str | None:
    if payload is None:
        return None
    if isinstance(payload, str):
        payload = payload.encode()
    return base64.b64encode(bytes(payload)).decode("ascii")


def _canonical_json(value: dict[str, Any]) -> bytes:
    text = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    for char, escape in _JSON_ESCAPES.items():
        text = text.replace(char, escape)
    return text.encode("utf-8")


def hash_intent(intent: Intent) -> bytes:
    """Return the SHA-256 digest of the intent's identifying fields."""
    data: dict[str, Any] = {
        "id": intent.id,
        "type": intent.type,
        "payload": _encode_payload(getattr(intent, "payload", None)),
        "timestamp": getattr(intent, "timestamp", 0),
        "sender_id": intent.sender_id,
    }
    metadata = getattr(intent, "metadata", None)
    if metadata:
        data["metadata"] = {key: metadata[key] for key in sorted(metadata)}
    try:
        encoded = _canonical_json(data)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"failed to marshal intent for hashing: {exc}") from exc
    return hashlib.sha256(encoded).digest()


def generate_random_bytes(length: int) -> bytes:
    """Return ``length`` cryptographically secure random bytes."""
    if length < 0:
        raise ValueError(f"length must not be negative: {length}")
    return secrets.token_bytes(length)


class CryptoUtils:
    """Hashing with the configured algorithm; every algorithm is SHA-256 for now."""

    def __init__(self, config: CryptoConfig | None = None) -> None:
        self.config = config if config is not None else CryptoConfig()

    def compute_hash(self, data: bytes) -> bytes:
        """Return the digest of ``data``."""
        return hashlib.sha256(data).digest()

    def verify_hash(self, data: bytes, expected_hash: bytes) -> bool:
        """Tell, in constant time, whether ``data`` hashes to ``expected_hash``."""
        actual = self.compute_hash(data)
        if len(actual) != len(expected_hash):
            return False
        return hmac.compare_digest(actual, expected_hash)