"""
services/subscription_service.py — Following and unfollowing channels.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from vidtube.app.errors import BadRequest, ErrorCode, NotFound
from vidtube.app.models.subscription import Subscription
from vidtube.app.models.user import User


def toggle_subscription(
        subscriber_id: int,
        channel_id: int,
        session: Session,
) -> dict:
    """
    Subscribes the caller to a channel, or unsubscribes if already subscribed.

    Raises:
      NotFound(CHANNEL_NOT_FOUND)     — no such channel
      BadRequest(SELF_SUBSCRIPTION)   — caller and channel are the same user

    Returns: {"channel_id": int, "subscribed": bool}
    """
    if session.get(User, channel_id) is None:
        raise NotFound(
            ErrorCode.CHANNEL_NOT_FOUND,
            "Channel does not exist.",
        )
    if subscriber_id == channel_id:
        raise BadRequest(
            ErrorCode.SELF_SUBSCRIPTION,
            "You cannot subscribe to your own channel.",
        )

    existing = session.execute(
        select(Subscription).where(
            Subscription.subscriber_id == subscriber_id,
            Subscription.channel_id == channel_id,
        )
    ).scalar_one_or_none()

    if existing is not None:
        session.delete(existing)
        subscribed = False
    else:
        session.add(Subscription(subscriber_id=subscriber_id, channel_id=channel_id))
        subscribed = True
    session.flush()

    return {"channel_id": channel_id, "subscribed": subscribed}
