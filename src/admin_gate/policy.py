"""Business rules applied to a verified session payload."""

from __future__ import annotations

import time
from typing import Callable, Iterable

from admin_gate.errors import PolicyViolation
from admin_gate.tokens import Role, SessionPayload


def now_ms() -> int:
    return int(time.time() * 1000)


class SessionPolicy:
    """Expiry and role checks. Fails closed.

    A payload without ``expiresAt`` never expires. The role must be one of
    ``authorized_roles`` (only ``admin`` by default).
    """

    def __init__(
        self,
        authorized_roles: Iterable[Role] = (Role.ADMIN,),
        clock: Callable[[], int] = now_ms,
    ):
        self.authorized_roles = frozenset(Role(r) for r in authorized_roles)
        self.clock = clock

    def check(self, payload: SessionPayload) -> None:
        if payload.expires_at is not None and self.clock() > payload.expires_at:
            raise PolicyViolation("session expired")
        if payload.role not in {r.value for r in self.authorized_roles}:
            raise PolicyViolation("role not authorized")

    def is_valid(self, payload: SessionPayload) -> bool:
        try:
            self.check(payload)
        except PolicyViolation:
            return False
        return True
