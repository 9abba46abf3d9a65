"""
services/token_codec.py — JWT signing and verification.

The codec knows nothing about users or sessions: it signs a claim dict with a
secret and a lifetime, and verifies a token string against a secret.

Every signed token carries:
  iat — issued-at
  exp — issued-at + ttl
  jti — random id, so two tokens minted in the same second still differ

No Flask imports. The secret and TTL are passed in by the caller.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import jwt


class TokenCodecError(Exception):
    """Raised when a token cannot be signed."""


class TokenRejected(Exception):
    """Raised when a token fails verification."""

    def __init__(self, message: str, expired: bool = False) -> None:
        super().__init__(message)
        self.expired = expired


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenCodec:

    def __init__(
            self,
            algorithm: str = "HS256",
            clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.algorithm = algorithm
        self._clock = clock

    def sign(self, payload: dict[str, Any], secret: str, ttl: timedelta) -> str:
        """Returns a signed token for `payload`, valid for `ttl` from now."""
        now = self._clock()
        claims = {
            **payload,
            "iat": now,
            "exp": now + ttl,
            "jti": secrets.token_hex(8),
        }
        try:
            return jwt.encode(claims, secret, algorithm=self.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise TokenCodecError(f"Could not sign token: {exc}") from exc

    def verify(self, token: str, secret: str) -> dict[str, Any]:
        """
        Returns the decoded claims of `token`.

        Raises TokenRejected for a bad signature, a malformed token or an
        expired one (the latter with `expired=True`).
        """
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenRejected("Token has expired.", expired=True) from exc
        except jwt.InvalidTokenError as exc:
            raise TokenRejected(f"Token is invalid: {exc}") from exc
