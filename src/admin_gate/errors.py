"""Rejection reasons for admin session tokens.

Each exception maps to one ``RejectReason``. Callers at the edge never let
these escape: the gate and the API dependency turn every one of them into the
same redirect or 401, so the client learns nothing about which check failed.
"""

from __future__ import annotations

from enum import Enum


class RejectReason(str, Enum):
    NO_COOKIE = "no_cookie"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    UNPARSEABLE = "unparseable"
    POLICY = "policy"
    INTERNAL = "internal"


class SessionTokenError(Exception):
    reason: RejectReason = RejectReason.INTERNAL


class MalformedToken(SessionTokenError):
    """Transport decoding or separator splitting failed."""

    reason = RejectReason.MALFORMED


class SignatureMismatch(SessionTokenError):
    """Recomputed HMAC differs from the supplied one."""

    reason = RejectReason.BAD_SIGNATURE


class SecretNotConfigured(SignatureMismatch):
    """No signing secret is configured, so nothing can be signed or verified."""


class PayloadParseError(SessionTokenError):
    """Signed data does not parse into a session payload."""

    reason = RejectReason.UNPARSEABLE


class PolicyViolation(SessionTokenError):
    """Payload parsed but is expired or carries an unauthorized role."""

    reason = RejectReason.POLICY
