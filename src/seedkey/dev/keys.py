from __future__ import annotations
import base64
import secrets
from typing import Dict, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from ..protocol.validation import json_dumps_sorted

MAX_B64_LENGTH = 4096


def b64e(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def b64d(s: str) -> bytes:
    if len(s) > MAX_B64_LENGTH:
        raise ValueError(f"Base64 too long: {len(s)} > {MAX_B64_LENGTH}")
    return base64.b64decode(s, validate=True)


def derive_domain_key(seed: bytes, domain: str) -> Ed25519PrivateKey:
    material = HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=b"seedkey|domain-key|v1",
        info=domain.encode("utf-8"),
    ).derive(seed)
    return Ed25519PrivateKey.from_private_bytes(material)


def public_key_b64(key: Ed25519PrivateKey) -> str:
    return b64e(key.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw))


def challenge_bytes(challenge: dict) -> bytes:
    return json_dumps_sorted(challenge).encode("utf-8")


def verify_signature(public_key: str, signature: str, data: bytes) -> bool:
    try:
        Ed25519PublicKey.from_public_bytes(b64d(public_key)).verify(b64d(signature), data)
    except (InvalidSignature, ValueError):
        return False
    return True


class DomainKeyring:
    """One Ed25519 key per domain, all derived from a single seed."""

    def __init__(self, seed: Optional[bytes] = None):
        if seed is not None and len(seed) < 16:
            raise ValueError("seed must be at least 16 bytes")
        self.seed = seed
        self._keys: Dict[str, Ed25519PrivateKey] = {}

    @classmethod
    def generate(cls) -> "DomainKeyring":
        return cls(secrets.token_bytes(32))

    @property
    def initialized(self) -> bool:
        return self.seed is not None

    def key_for(self, domain: str) -> Ed25519PrivateKey:
        if self.seed is None:
            raise ValueError("keyring has no seed")
        if domain not in self._keys:
            self._keys[domain] = derive_domain_key(self.seed, domain)
        return self._keys[domain]

    def public_key(self, domain: str) -> str:
        return public_key_b64(self.key_for(domain))

    def sign(self, domain: str, data: bytes) -> str:
        return b64e(self.key_for(domain).sign(data))
