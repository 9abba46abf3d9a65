"""
routes/subscriptions.py — Subscription route handlers.

Endpoints (url_prefix=/api/v1/subscriptions):
  POST   /subscriptions/c/:channel_id  → 200  toggle subscription
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify

from vidtube.app.extensions import db
from vidtube.app.middleware.auth_middleware import require_auth
from vidtube.app.services import subscription_service

subscriptions_bp = Blueprint("subscriptions", __name__)


@subscriptions_bp.route("/c/<int:channel_id>", methods=["POST"])
@require_auth
def toggle_subscription(channel_id: int):
    """POST /subscriptions/c/:channel_id — Subscribe, or unsubscribe if already subscribed."""
    result = subscription_service.toggle_subscription(
        subscriber_id=g.user_id,
        channel_id=channel_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
