"""
routes/users.py — Profile and channel route handlers.

Layer rules: parse, validate, call ONE service, commit, return envelope.

Endpoints (url_prefix=/api/v1/users):
  PATCH  /users/me               → 200  update full name and email
  PATCH  /users/me/avatar        → 200  replace avatar (multipart)
  PATCH  /users/me/cover-image   → 200  replace cover image (multipart)
  GET    /users/c/:username      → 200  channel profile with follower counts
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from vidtube.app.extensions import db
from vidtube.app.middleware.auth_middleware import require_auth
from vidtube.app.middleware.uploads import stage_upload
from vidtube.app.schemas.user_schema import UpdateAccountSchema
from vidtube.app.services import auth_service, media_host, user_service

users_bp = Blueprint("users", __name__)


@users_bp.route("/me", methods=["PATCH"])
@require_auth
def update_account():
    """PATCH /users/me — Update full name and email."""
    data = UpdateAccountSchema().load(request.get_json(force=True, silent=True) or {})
    result = user_service.update_account_details(
        user_id=g.user_id,
        full_name=data["full_name"],
        email=data["email"],
        store=auth_service.build_user_store(db.session),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/me/avatar", methods=["PATCH"])
@require_auth
def update_avatar():
    """PATCH /users/me/avatar — Upload a new avatar."""
    result = user_service.update_avatar(
        user_id=g.user_id,
        local_path=stage_upload("avatar"),
        store=auth_service.build_user_store(db.session),
        media_host=media_host.current_client(),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/me/cover-image", methods=["PATCH"])
@require_auth
def update_cover_image():
    """PATCH /users/me/cover-image — Upload a new cover image."""
    result = user_service.update_cover_image(
        user_id=g.user_id,
        local_path=stage_upload("cover_image"),
        store=auth_service.build_user_store(db.session),
        media_host=media_host.current_client(),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/c/<string:username>", methods=["GET"])
@require_auth
def channel_profile(username: str):
    """GET /users/c/:username — Channel profile as seen by the caller."""
    result = user_service.get_channel_profile(
        username=username,
        viewer_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
