"""Signed, stateless admin session tokens.

Token format: ``base64( {data} "." {hex_hmac} )`` where ``data`` is the
canonical JSON of a :class:`SessionPayload` and ``hex_hmac`` is
HMAC-SHA256 over ``data`` keyed with the server secret.

The split between data and signature happens on the *last* dot, so the JSON
may itself contain dots (``"role": "a.b"``, float claims, and so on).
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import json
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr

from admin_gate.errors import (
    MalformedToken,
    PayloadParseError,
    SecretNotConfigured,
    SignatureMismatch,
)

SEPARATOR = b"."

__all__ = [
    "Role",
    "SessionPayload",
    "SignatureVerifier",
    "TokenCodec",
    "canonical_bytes",
]


class Role(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"


class SessionPayload(BaseModel):
    """Claims carried by an admin session token.

    Unknown claims are kept and round-tripped but never interpreted here.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    role: StrictStr | None = None
    expires_at: StrictInt | None = Field(default=None, alias="expiresAt")


def canonical_bytes(payload: SessionPayload) -> bytes:
    """Serialize *payload* to compact, key-sorted ASCII JSON.

    The same logical payload always produces the same bytes.
    """
    data = payload.model_dump(by_alias=True)
    for key in ("role", "expiresAt"):
        if data.get(key) is None:
            data.pop(key, None)
    return json.dumps(data, sort_keys=True, separators=(",", ":")).encode("ascii")


class SignatureVerifier:
    """HMAC-SHA256 signer/verifier bound to one server secret.

    An empty or missing secret never validates anything and refuses to sign.
    """

    def __init__(self, secret: str | bytes | None):
        if isinstance(secret, str):
            secret = secret.encode("utf-8")
        self._key = secret or b""

    def __repr__(self) -> str:
        return f"SignatureVerifier(configured={self.configured})"

    @property
    def configured(self) -> bool:
        return bool(self._key)

    def sign(self, data: bytes) -> str:
        if not self._key:
            raise SecretNotConfigured("session secret is not configured")
        return hmac.new(self._key, data, hashlib.sha256).hexdigest()

    def verify(self, data: bytes, signature: str) -> bool:
        if not self._key or not signature:
            return False
        expected = hmac.new(self._key, data, hashlib.sha256).hexdigest()
        return hmac.compare_digest(expected.encode("ascii"), signature.encode("utf-8"))


class TokenCodec:
    def __init__(self, verifier: SignatureVerifier):
        self.verifier = verifier

    def encode(self, payload: SessionPayload) -> str:
        data = canonical_bytes(payload)
        signature = self.verifier.sign(data)
        raw = data + SEPARATOR + signature.encode("ascii")
        return base64.b64encode(raw).decode("ascii")

    @staticmethod
    def decode(token: str) -> tuple[bytes, str]:
        """Split *token* into ``(data, signature)`` without checking the signature."""
        try:
            raw = base64.b64decode(token.encode("ascii"), validate=True)
        except (ValueError, binascii.Error) as exc:
            raise MalformedToken("token is not valid base64") from exc

        data, sep, signature = raw.rpartition(SEPARATOR)
        if not sep or not data or not signature:
            raise MalformedToken("token has no data/signature pair")
        try:
            return data, signature.decode("ascii")
        except UnicodeDecodeError as exc:
            raise MalformedToken("signature is not ASCII") from exc

    def verified_data(self, token: str) -> bytes:
        data, signature = self.decode(token)
        if not self.verifier.configured:
            raise SecretNotConfigured("session secret is not configured")
        if not self.verifier.verify(data, signature):
            raise SignatureMismatch("signature does not match")
        return data

    @staticmethod
    def parse(data: bytes) -> SessionPayload:
        try:
            claims = json.loads(data.decode("utf-8"))
        except ValueError as exc:
            raise PayloadParseError("payload is not UTF-8 JSON") from exc
        if not isinstance(claims, dict):
            raise PayloadParseError("payload is not a JSON object")
        try:
            return SessionPayload.model_validate(claims)
        except ValueError as exc:
            raise PayloadParseError("payload claims have the wrong types") from exc

    def load(self, token: str) -> SessionPayload:
        """Decode, verify and parse *token*. Policy is not applied here."""
        return self.parse(self.verified_data(token))
