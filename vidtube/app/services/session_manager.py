"""
services/session_manager.py — Credential and session lifecycle.

The SessionManager issues, verifies, rotates and revokes the two token kinds
tied to a user:

  access token  — short-lived JWT, never stored server-side, verified by
                  signature and expiry alone.
  refresh token — longer-lived JWT, stored verbatim in the user's single
                  refresh-token slot. Accepted only if it verifies AND is
                  byte-for-byte equal to the stored value.

Every issue() overwrites the slot, so a refresh token is usable once: after
rotation (or logout) the old value no longer matches and is rejected even
though its signature and expiry are still fine.

The manager holds no session data. It is built per request around a
UserStore, a TokenCodec and an immutable TokenPolicy. No Flask imports.
"""

from __future__ import annotations

import hmac
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Protocol

from vidtube.app.errors import BadRequest, ErrorCode, Internal, NotFound, Unauthenticated
from vidtube.app.services.token_codec import TokenCodec, TokenCodecError, TokenRejected
from vidtube.app.services.user_store import StoreError, normalize_identity


logger = logging.getLogger(__name__)


class UserStoreProtocol(Protocol):
    def find_by_id(self, user_id: int) -> Any: ...
    def find_by_identifier(self, *identifiers: str) -> Any: ...
    def set_refresh_token(self, user_id: int, token: str | None) -> None: ...
    def verify_password(self, user: Any, plaintext: str) -> bool: ...


@dataclass(frozen=True)
class TokenPolicy:
    access_secret: str
    refresh_secret: str
    access_ttl: timedelta
    refresh_ttl: timedelta
    reveal_unknown_user: bool = False

    def __post_init__(self) -> None:
        if self.access_ttl >= self.refresh_ttl:
            raise ValueError("Access token lifetime must be shorter than refresh token lifetime.")

    @classmethod
    def from_config(cls, config) -> "TokenPolicy":
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            access_ttl=config["ACCESS_TOKEN_EXPIRES"],
            refresh_ttl=config["REFRESH_TOKEN_EXPIRES"],
            reveal_unknown_user=bool(config.get("LOGIN_REVEAL_UNKNOWN_USER", False)),
        )


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str

    def to_dict(self) -> dict:
        return {
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
        }


def _subject_id(claims: dict) -> int | None:
    try:
        return int(claims.get("sub"))
    except (TypeError, ValueError):
        return None


class SessionManager:

    def __init__(
            self,
            store: UserStoreProtocol,
            codec: TokenCodec,
            policy: TokenPolicy,
    ) -> None:
        self._store = store
        self._codec = codec
        self._policy = policy

    def issue(self, user_id: int) -> TokenPair:
        """
        Mints a fresh access/refresh pair and stores the refresh token,
        replacing whatever was there.

        The caller must already have established the user's identity, so
        any failure here is an infrastructure fault.

        Raises:
          Internal(TOKEN_GENERATION_FAILED)
        """
        try:
            user = self._store.find_by_id(user_id)
            if user is None:
                raise LookupError(f"user {user_id} vanished before token issue")

            access_token = self._codec.sign(
                {
                    "sub": str(user.id),
                    "username": user.username,
                    "email": user.email,
                    "full_name": user.full_name,
                },
                self._policy.access_secret,
                self._policy.access_ttl,
            )
            refresh_token = self._codec.sign(
                {"sub": str(user.id)},
                self._policy.refresh_secret,
                self._policy.refresh_ttl,
            )
            self._store.set_refresh_token(user.id, refresh_token)
        except (LookupError, TokenCodecError, StoreError) as exc:
            logger.error("Token generation failed for user %s: %s", user_id, exc)
            raise Internal(
                ErrorCode.TOKEN_GENERATION_FAILED,
                "Something went wrong while generating refresh and access tokens.",
            ) from exc

        logger.debug("Issued token pair for user %s", user_id)
        return TokenPair(access_token=access_token, refresh_token=refresh_token)

    def verify_refresh(self, presented: str | None) -> int:
        """
        Checks a presented refresh token and returns the user id it belongs to.

        Raises:
          BadRequest(TOKEN_MISSING)                 — nothing presented
          Unauthenticated(REFRESH_TOKEN_INVALID)    — bad signature, malformed,
                                                      expired, or unknown user
          Unauthenticated(REFRESH_TOKEN_USED)       — valid token that no longer
                                                      matches the stored one
        """
        if not presented:
            raise BadRequest(
                ErrorCode.TOKEN_MISSING,
                "A refresh token is required.",
                field="refresh_token",
            )

        try:
            claims = self._codec.verify(presented, self._policy.refresh_secret)
        except TokenRejected as exc:
            raise Unauthenticated(
                ErrorCode.REFRESH_TOKEN_INVALID,
                "Invalid or expired refresh token.",
            ) from exc

        user_id = _subject_id(claims)
        user = self._store.find_by_id(user_id) if user_id is not None else None
        if user is None:
            raise Unauthenticated(
                ErrorCode.REFRESH_TOKEN_INVALID,
                "Invalid refresh token.",
            )

        stored = user.refresh_token
        if stored is None or not hmac.compare_digest(
                presented.encode("utf-8"),
                stored.encode("utf-8"),
        ):
            logger.warning("Rejected superseded or revoked refresh token for user %s", user.id)
            raise Unauthenticated(
                ErrorCode.REFRESH_TOKEN_USED,
                "Refresh token is expired or used.",
            )

        return user.id

    def refresh(self, presented: str | None) -> tuple[int, TokenPair]:
        """Rotates: verifies `presented`, then issues a new pair over it."""
        user_id = self.verify_refresh(presented)
        pair = self.issue(user_id)
        logger.info("Rotated refresh token for user %s", user_id)
        return user_id, pair

    def revoke(self, user_id: int) -> None:
        """Clears the user's refresh-token slot. Idempotent."""
        self._store.set_refresh_token(user_id, None)
        logger.info("Revoked session for user %s", user_id)

    def login(
            self,
            identifier: str | None,
            password: str | None,
            email: str | None = None,
    ) -> int:
        """
        Authenticates a username-or-email plus password and returns the user id.
        Does not issue tokens; the caller follows up with issue().

        A client may send a username and an email together; the user matching
        either one is checked.

        Raises:
          BadRequest(MISSING_FIELD)             — blank identifier or password
          NotFound(USER_NOT_FOUND)              — unknown user, only when the
                                                  policy reveals it
          Unauthenticated(INVALID_CREDENTIALS)  — wrong password (or unknown
                                                  user, by default)
        """
        candidates = [
            value for value in (normalize_identity(identifier), normalize_identity(email)) if value
        ]
        if not candidates or not password:
            raise BadRequest(
                ErrorCode.MISSING_FIELD,
                "A username or email and a password are required.",
            )

        user = self._store.find_by_identifier(*candidates)
        if user is None:
            if self._policy.reveal_unknown_user:
                raise NotFound(ErrorCode.USER_NOT_FOUND, "User does not exist.")
            raise Unauthenticated(
                ErrorCode.INVALID_CREDENTIALS,
                "The username, email or password is incorrect.",
            )

        if not self._store.verify_password(user, password):
            raise Unauthenticated(
                ErrorCode.INVALID_CREDENTIALS,
                "The username, email or password is incorrect.",
            )

        logger.info("User %s logged in", user.id)
        return user.id
