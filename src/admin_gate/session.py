"""Fail-closed verification of admin session cookies.

``SessionAuthenticator.authenticate`` runs decode, signature check, payload
parse and policy in that order and returns a ``VerificationResult`` instead of
raising. The rejection reason stays on the result for logs and tests and is
never sent to the client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from admin_gate.errors import RejectReason, SessionTokenError
from admin_gate.policy import SessionPolicy
from admin_gate.tokens import Role, SessionPayload, TokenCodec

logger = logging.getLogger(__name__)

SESSION_COOKIE = "admin_session"


@dataclass(frozen=True)
class VerificationResult:
    ok: bool
    payload: SessionPayload | None = None
    reason: RejectReason | None = None

    def __bool__(self) -> bool:
        return self.ok


class SessionAuthenticator:
    def __init__(self, codec: TokenCodec, policy: SessionPolicy | None = None):
        self.codec = codec
        self.policy = policy or SessionPolicy()

    def authenticate(self, token: str | None) -> VerificationResult:
        if not token:
            return VerificationResult(ok=False, reason=RejectReason.NO_COOKIE)
        try:
            payload = self.codec.load(token)
            self.policy.check(payload)
        except SessionTokenError as exc:
            return VerificationResult(ok=False, reason=exc.reason)
        except Exception:
            logger.exception("Unexpected error verifying admin session")
            return VerificationResult(ok=False, reason=RejectReason.INTERNAL)
        return VerificationResult(ok=True, payload=payload)

    def issue(self, ttl_seconds: int, role: Role = Role.ADMIN) -> str:
        """Mint a token for *role* expiring *ttl_seconds* from now."""
        expires_at = self.policy.clock() + ttl_seconds * 1000
        payload = SessionPayload(role=role.value, expiresAt=expires_at)
        return self.codec.encode(payload)
