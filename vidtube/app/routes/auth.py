"""
routes/auth.py — Authentication route handlers.

Layer rules:
  - Parse request body
  - Validate with the appropriate schema (raises ValidationError on bad input)
  - Call exactly ONE service function
  - Commit the DB session
  - Place or clear session cookies
  - Return the standard response envelope: {"data": {...}, "warnings": []}

AppError propagates to the global error handler in app/__init__.py — routes
never catch it.

Endpoints (url_prefix=/api/v1/auth):
  POST   /auth/register         → 201
  POST   /auth/login            → 200
  POST   /auth/refresh          → 200
  POST   /auth/logout           → 200
  POST   /auth/change-password  → 200
  GET    /auth/me               → 200
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from vidtube.app.extensions import db
from vidtube.app.middleware.auth_middleware import ACCESS_COOKIE, require_auth
from vidtube.app.middleware.uploads import stage_upload
from vidtube.app.schemas.auth_schema import (
    ChangePasswordSchema,
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
)
from vidtube.app.services import auth_service, media_host

auth_bp = Blueprint("auth", __name__)

REFRESH_COOKIE = "refreshToken"


def _cookie_options() -> dict:
    return {
        "httponly": True,
        "secure": current_app.config.get("COOKIE_SECURE", True),
        "samesite": current_app.config.get("COOKIE_SAMESITE", "Lax"),
    }


def _set_session_cookies(response, tokens: dict):
    options = _cookie_options()
    response.set_cookie(ACCESS_COOKIE, tokens["access_token"], **options)
    response.set_cookie(REFRESH_COOKIE, tokens["refresh_token"], **options)
    return response


def _clear_session_cookies(response):
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, secure=options["secure"], httponly=True,
                           samesite=options["samesite"])
    response.delete_cookie(REFRESH_COOKIE, secure=options["secure"], httponly=True,
                           samesite=options["samesite"])
    return response


@auth_bp.route("/register", methods=["POST"])
def register():
    """POST /auth/register — Create account (multipart). Does not log in."""
    data = RegisterSchema().load(request.form.to_dict())
    avatar_path = stage_upload("avatar", required=False)
    cover_image_path = stage_upload("cover_image", required=False)
    result = auth_service.register_user(
        full_name=data["full_name"],
        username=data["username"],
        email=data["email"],
        password=data["password"],
        avatar_path=avatar_path,
        cover_image_path=cover_image_path,
        store=auth_service.build_user_store(db.session),
        media_host=media_host.current_client(),
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    """POST /auth/login — Authenticate with username or email; return tokens."""
    data = LoginSchema().load(request.get_json(force=True, silent=True) or {})
    result = auth_service.login_user(
        identifier=data.get("username"),
        password=data["password"],
        manager=auth_service.build_session_manager(db.session),
        store=auth_service.build_user_store(db.session),
        email=data.get("email"),
    )
    db.session.commit()
    response = jsonify({"data": result, "warnings": []})
    return _set_session_cookies(response, result), 200


@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    """POST /auth/refresh — Rotate the refresh token (cookie first, then body)."""
    data = RefreshTokenSchema().load(request.get_json(force=True, silent=True) or {})
    presented = request.cookies.get(REFRESH_COOKIE) or data.get("refresh_token")
    result = auth_service.refresh_session(
        presented=presented,
        manager=auth_service.build_session_manager(db.session),
    )
    db.session.commit()
    response = jsonify({"data": result, "warnings": []})
    return _set_session_cookies(response, result), 200


@auth_bp.route("/logout", methods=["POST"])
@require_auth
def logout():
    """POST /auth/logout — Revoke the session and clear cookies. (Auth required.)"""
    auth_service.logout_user(
        user_id=g.user_id,
        manager=auth_service.build_session_manager(db.session),
    )
    db.session.commit()
    response = jsonify({"data": {"message": "Logged out successfully."}, "warnings": []})
    return _clear_session_cookies(response), 200


@auth_bp.route("/change-password", methods=["POST"])
@require_auth
def change_password():
    """POST /auth/change-password — Replace the password. (Auth required.)"""
    data = ChangePasswordSchema().load(request.get_json(force=True, silent=True) or {})
    auth_service.change_password(
        user_id=g.user_id,
        old_password=data["old_password"],
        new_password=data["new_password"],
        store=auth_service.build_user_store(db.session),
    )
    db.session.commit()
    return jsonify({"data": {"message": "Password changed successfully."}, "warnings": []}), 200


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    """GET /auth/me — Return current user profile. (Auth required.)"""
    result = auth_service.get_current_user(
        user_id=g.user_id,
        store=auth_service.build_user_store(db.session),
    )
    return jsonify({"data": result, "warnings": []}), 200
