"""
services/user_service.py — Profile updates and the channel profile view.

Layer rules:
  - No Flask imports. Collaborators are passed in.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import and_, exists, func, select
from sqlalchemy.orm import Session, aliased

from vidtube.app.errors import BadRequest, Conflict, ErrorCode, Internal, NotFound
from vidtube.app.models.subscription import Subscription
from vidtube.app.models.user import User
from vidtube.app.services.media_host import MediaHostClient
from vidtube.app.services.user_store import (
    DuplicateUserError,
    UserStore,
    normalize_identity,
    to_safe_dict,
)


# ── Private helpers ────────────────────────────────────────────────────────

def _get_user_or_404(user_id: int, store: UserStore) -> User:
    user = store.find_by_id(user_id)
    if user is None:
        raise NotFound(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} not found.",
        )
    return user


def _replace_image(
        user_id: int,
        field: str,
        label: str,
        local_path: str | None,
        store: UserStore,
        media_host: MediaHostClient,
) -> dict:
    if not local_path:
        raise BadRequest(
            ErrorCode.FILE_MISSING,
            f"{label} file is missing.",
            field=field,
        )
    user = _get_user_or_404(user_id, store)

    uploaded = media_host.upload(local_path)
    if not uploaded or not uploaded.get("url"):
        raise Internal(
            ErrorCode.MEDIA_UPLOAD_FAILED,
            f"Error while uploading {label.lower()}.",
        )

    store.update_fields(user, **{field: uploaded["url"]})
    return to_safe_dict(user)


# ── Public service functions ───────────────────────────────────────────────

def update_account_details(
        user_id: int,
        full_name: str,
        email: str,
        store: UserStore,
) -> dict:
    """
    Raises:
      BadRequest(BLANK_FIELD)      — full_name or email blank
      Conflict(DUPLICATE_EMAIL)    — email belongs to another user
      NotFound(USER_NOT_FOUND)
    """
    for name, value in (("full_name", full_name), ("email", email)):
        if not value or not value.strip():
            raise BadRequest(
                ErrorCode.BLANK_FIELD,
                "All fields are required.",
                field=name,
            )

    user = _get_user_or_404(user_id, store)

    owner = store.find_conflict(None, email)
    if owner is not None and owner.id != user.id:
        raise Conflict(
            ErrorCode.DUPLICATE_EMAIL,
            "A user with this email already exists.",
            field="email",
        )

    try:
        store.update_fields(user, full_name=full_name.strip(), email=email)
    except DuplicateUserError as exc:
        raise Conflict(
            ErrorCode.DUPLICATE_EMAIL,
            "A user with this email already exists.",
            field="email",
        ) from exc
    return to_safe_dict(user)


def update_avatar(
        user_id: int,
        local_path: str | None,
        store: UserStore,
        media_host: MediaHostClient,
) -> dict:
    """Uploads a new avatar and points the user at it."""
    return _replace_image(user_id, "avatar", "Avatar", local_path, store, media_host)


def update_cover_image(
        user_id: int,
        local_path: str | None,
        store: UserStore,
        media_host: MediaHostClient,
) -> dict:
    """Uploads a new cover image and points the user at it."""
    return _replace_image(user_id, "cover_image", "Cover image", local_path, store, media_host)


def get_channel_profile(
        username: str,
        viewer_id: int | None,
        session: Session,
) -> dict:
    """
    Public profile of a channel with its follower counts.

    A single SELECT: the channel row plus three correlated subqueries over
    `subscriptions` —
      subscribers_count             rows where channel_id = channel
      channels_subscribed_to_count  rows where subscriber_id = channel
      is_subscribed                 a row (viewer -> channel) exists

    Raises:
      BadRequest(BLANK_FIELD)       — username blank
      NotFound(CHANNEL_NOT_FOUND)   — no such channel
    """
    username = normalize_identity(username)
    if not username:
        raise BadRequest(
            ErrorCode.BLANK_FIELD,
            "Username is missing.",
            field="username",
        )

    channel = aliased(User, name="channel")
    followers = aliased(Subscription, name="followers")
    following = aliased(Subscription, name="following")
    viewer_row = aliased(Subscription, name="viewer_row")

    subscribers_count = (
        select(func.count(followers.id))
        .where(followers.channel_id == channel.id)
        .correlate(channel)
        .scalar_subquery()
    )
    subscribed_to_count = (
        select(func.count(following.id))
        .where(following.subscriber_id == channel.id)
        .correlate(channel)
        .scalar_subquery()
    )
    is_subscribed = exists().where(
        and_(
            viewer_row.channel_id == channel.id,
            viewer_row.subscriber_id == viewer_id,
        )
    ).correlate(channel)

    row = session.execute(
        select(
            channel.id,
            channel.full_name,
            channel.username,
            channel.email,
            channel.avatar,
            channel.cover_image,
            subscribers_count.label("subscribers_count"),
            subscribed_to_count.label("channels_subscribed_to_count"),
            is_subscribed.label("is_subscribed"),
        ).where(channel.username == username)
    ).one_or_none()

    if row is None:
        raise NotFound(
            ErrorCode.CHANNEL_NOT_FOUND,
            "Channel does not exist.",
        )

    return {
        "id": row.id,
        "full_name": row.full_name,
        "username": row.username,
        "email": row.email,
        "avatar": row.avatar,
        "cover_image": row.cover_image or "",
        "subscribers_count": int(row.subscribers_count),
        "channels_subscribed_to_count": int(row.channels_subscribed_to_count),
        "is_subscribed": bool(row.is_subscribed) if viewer_id is not None else False,
    }
