"""
services/auth_service.py — Account and session use cases.

Responsibilities:
  - User registration (uniqueness, avatar/cover upload, record creation)
  - Login, refresh and logout through the SessionManager
  - Password change and current-user lookup

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, cookies or HTTP status codes
  - current_app.config is read ONLY in build_session_manager() and
    build_user_store(), which assemble the collaborators for one request.

Registration never issues tokens: registering and logging in are separate
steps.
"""

from __future__ import annotations

import logging

from flask import current_app
from sqlalchemy.orm import Session

from vidtube.app.errors import BadRequest, Conflict, ErrorCode, NotFound
from vidtube.app.services.media_host import MediaHostClient
from vidtube.app.services.session_manager import SessionManager, TokenPolicy
from vidtube.app.services.token_codec import TokenCodec
from vidtube.app.services.user_store import (
    DuplicateUserError,
    UserStore,
    normalize_identity,
    to_safe_dict,
)


logger = logging.getLogger(__name__)


# ── Collaborator assembly ──────────────────────────────────────────────────

def build_user_store(session: Session) -> UserStore:
    return UserStore(
        session,
        bcrypt_rounds=current_app.config.get("BCRYPT_LOG_ROUNDS", 12),
    )


def build_session_manager(session: Session) -> SessionManager:
    """SessionManager for the current request, configured from app config."""
    return SessionManager(
        store=build_user_store(session),
        codec=TokenCodec(algorithm=current_app.config.get("JWT_ALGORITHM", "HS256")),
        policy=TokenPolicy.from_config(current_app.config),
    )


# ── Private helpers ────────────────────────────────────────────────────────

def _require_non_blank(**fields: str | None) -> None:
    for name, value in fields.items():
        if value is None or not str(value).strip():
            raise BadRequest(
                ErrorCode.BLANK_FIELD,
                "All fields are required.",
                field=name,
            )


def _conflict_with(existing, email: str) -> Conflict:
    if existing.email == normalize_identity(email):
        return Conflict(
            ErrorCode.DUPLICATE_EMAIL,
            "A user with this email already exists.",
            field="email",
        )
    return Conflict(
        ErrorCode.DUPLICATE_USERNAME,
        "A user with this username already exists.",
        field="username",
    )


# ── Public service functions ───────────────────────────────────────────────

def register_user(
        full_name: str,
        username: str,
        email: str,
        password: str,
        avatar_path: str | None,
        cover_image_path: str | None,
        store: UserStore,
        media_host: MediaHostClient,
) -> dict:
    """
    Creates a user account. Does NOT log the user in.

    Raises:
      BadRequest(BLANK_FIELD)         — a required field is blank
      Conflict(DUPLICATE_EMAIL)       — email already registered
      Conflict(DUPLICATE_USERNAME)    — username already taken
      BadRequest(FILE_MISSING)        — no avatar, or the host gave no URL

    Returns: safe projection of the new user
    """
    try:
        _require_non_blank(
            full_name=full_name,
            username=username,
            email=email,
            password=password,
        )
        existing = store.find_conflict(username, email)
        if existing is not None:
            raise _conflict_with(existing, email)
        if not avatar_path:
            raise BadRequest(
                ErrorCode.FILE_MISSING,
                "Avatar file is required.",
                field="avatar",
            )
    except (BadRequest, Conflict):
        media_host.discard(avatar_path, cover_image_path)
        raise

    avatar = media_host.upload(avatar_path)
    cover_image = media_host.upload(cover_image_path)
    if not avatar:
        raise BadRequest(
            ErrorCode.FILE_MISSING,
            "Avatar file is required.",
            field="avatar",
        )

    try:
        user = store.create(
            username=username,
            email=email,
            full_name=full_name,
            password=password,
            avatar=avatar["url"],
            cover_image=cover_image["url"] if cover_image else "",
        )
    except DuplicateUserError as exc:
        # Lost a race against a concurrent registration.
        existing = store.find_conflict(username, email)
        if existing is not None:
            raise _conflict_with(existing, email) from exc
        raise Conflict(
            ErrorCode.DUPLICATE_USERNAME,
            "A user with this email or username already exists.",
        ) from exc

    logger.info("Registered user %s", user.id)
    return to_safe_dict(user)


def login_user(
        identifier: str | None,
        password: str,
        manager: SessionManager,
        store: UserStore,
        email: str | None = None,
) -> dict:
    """
    Authenticates and starts a session. `identifier` is a username or an
    email; `email` is an optional second identifier sent alongside it.

    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    user_id = manager.login(identifier, password, email=email)
    tokens = manager.issue(user_id)
    user = store.find_by_id(user_id)
    return {
        "user": to_safe_dict(user),
        **tokens.to_dict(),
    }


def refresh_session(presented: str | None, manager: SessionManager) -> dict:
    """
    Exchanges a refresh token for a new access/refresh pair.
    The presented token is unusable afterwards.

    Returns: {"access_token": "...", "refresh_token": "..."}
    """
    _, tokens = manager.refresh(presented)
    return tokens.to_dict()


def logout_user(user_id: int, manager: SessionManager) -> None:
    """Ends the user's session. Outstanding refresh tokens stop working."""
    manager.revoke(user_id)


def change_password(
        user_id: int,
        old_password: str,
        new_password: str,
        store: UserStore,
) -> None:
    """
    Raises:
      NotFound(USER_NOT_FOUND)          — user no longer exists
      BadRequest(INVALID_OLD_PASSWORD)  — old password does not match
      BadRequest(BLANK_FIELD)           — new password blank
    """
    user = store.find_by_id(user_id)
    if user is None:
        raise NotFound(ErrorCode.USER_NOT_FOUND, f"User {user_id} not found.")
    if not store.verify_password(user, old_password):
        raise BadRequest(
            ErrorCode.INVALID_OLD_PASSWORD,
            "Invalid old password.",
            field="old_password",
        )
    _require_non_blank(new_password=new_password)
    store.set_password(user, new_password)
    logger.info("Password changed for user %s", user_id)


def get_current_user(user_id: int, store: UserStore) -> dict:
    """
    Returns the profile of the currently authenticated user.

    Raises:
      NotFound(USER_NOT_FOUND) — user deleted between token issue and request.
    """
    user = store.find_by_id(user_id)
    if user is None:
        raise NotFound(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} not found.",
        )
    return to_safe_dict(user)
