"""
services/user_store.py — Persistence operations on User records.

Wraps a SQLAlchemy session. Not-found is reported as None, never raised.
SQLAlchemy failures are re-raised as StoreError so callers do not depend on
the ORM's exception hierarchy.

Commits are the route's job; the store only flushes.

Password storage:
  - Hashed with bcrypt (cost factor `bcrypt_rounds`, default 12)
  - Raw password is never stored, never logged
"""

from __future__ import annotations

from typing import Any

import bcrypt
from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from vidtube.app.models.user import User


class StoreError(Exception):
    """Raised when the underlying database operation fails."""


class DuplicateUserError(StoreError):
    """Raised when an insert or update violates a unique constraint."""


# Fields update_fields() may touch. Session material and the password hash
# have their own narrow operations.
_PROFILE_FIELDS = frozenset({"full_name", "email", "avatar", "cover_image"})


def normalize_identity(value: str | None) -> str:
    """Usernames and emails are compared and stored lowercase, without padding."""
    return (value or "").strip().lower()


def to_safe_dict(user: User) -> dict:
    """Safe projection: no password hash, no refresh token."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "full_name": user.full_name,
        "avatar": user.avatar,
        "cover_image": user.cover_image or "",
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "updated_at": user.updated_at.isoformat() if user.updated_at else None,
    }


class UserStore:

    def __init__(self, session: Session, bcrypt_rounds: int = 12) -> None:
        self.session = session
        self.bcrypt_rounds = bcrypt_rounds

    # ── Lookups ────────────────────────────────────────────────────────────

    def find_by_id(self, user_id: int) -> User | None:
        try:
            return self.session.get(User, user_id)
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load user {user_id}.") from exc

    def find_by_identifier(self, *identifiers: str | None) -> User | None:
        """
        Finds a user whose username OR email equals any of `identifiers`.
        Blank values are skipped; the lowest id wins if several users match.
        """
        values = {normalize_identity(value) for value in identifiers} - {""}
        if not values:
            return None
        try:
            return self.session.execute(
                select(User)
                .where(or_(User.username.in_(values), User.email.in_(values)))
                .order_by(User.id)
            ).scalars().first()
        except SQLAlchemyError as exc:
            raise StoreError("Could not look up user by identifier.") from exc

    def find_conflict(self, username: str | None, email: str | None) -> User | None:
        """Returns an existing user holding either `username` or `email`, if any."""
        clauses = []
        if username:
            clauses.append(User.username == normalize_identity(username))
        if email:
            clauses.append(User.email == normalize_identity(email))
        if not clauses:
            return None
        try:
            return self.session.execute(
                select(User).where(or_(*clauses))
            ).scalars().first()
        except SQLAlchemyError as exc:
            raise StoreError("Could not check for existing users.") from exc

    # ── Writes ─────────────────────────────────────────────────────────────

    def create(
            self,
            username: str,
            email: str,
            full_name: str,
            password: str,
            avatar: str,
            cover_image: str = "",
    ) -> User:
        user = User(
            username=normalize_identity(username),
            email=normalize_identity(email),
            full_name=full_name.strip(),
            password_hash=self.hash_password(password),
            avatar=avatar,
            cover_image=cover_image or "",
        )
        self.session.add(user)
        self._flush()
        return user

    def set_refresh_token(self, user_id: int, token: str | None) -> None:
        """
        Overwrites the refresh-token slot of one user; None clears it.

        A single-column UPDATE: no other field is loaded, validated or
        rewritten. Missing users are a no-op.
        """
        try:
            self.session.execute(
                update(User)
                .where(User.id == user_id)
                .values(refresh_token=token)
            )
            self.session.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not update session for user {user_id}.") from exc

    def update_fields(self, user: User, **fields: Any) -> User:
        unknown = set(fields) - _PROFILE_FIELDS
        if unknown:
            raise ValueError(f"Not a profile field: {', '.join(sorted(unknown))}")
        if "email" in fields:
            fields["email"] = normalize_identity(fields["email"])
        for name, value in fields.items():
            setattr(user, name, value)
        self._flush()
        return user

    def set_password(self, user: User, new_password: str) -> None:
        user.password_hash = self.hash_password(new_password)
        self._flush()

    # ── Credentials ────────────────────────────────────────────────────────

    def hash_password(self, password: str) -> str:
        return bcrypt.hashpw(
            password.encode("utf-8"),
            bcrypt.gensalt(rounds=self.bcrypt_rounds),
        ).decode("utf-8")

    def verify_password(self, user: User, plaintext: str) -> bool:
        """Constant-time bcrypt comparison. Never raises for a bad password."""
        if not plaintext or not user.password_hash:
            return False
        try:
            return bcrypt.checkpw(
                plaintext.encode("utf-8"),
                user.password_hash.encode("utf-8"),
            )
        except ValueError:
            # bcrypt rejects passwords over 72 bytes and malformed hashes.
            return False

    def _flush(self) -> None:
        try:
            self.session.flush()
        except IntegrityError as exc:
            self.session.rollback()
            raise DuplicateUserError("A user with this username or email already exists.") from exc
        except SQLAlchemyError as exc:
            raise StoreError("Could not persist user.") from exc
