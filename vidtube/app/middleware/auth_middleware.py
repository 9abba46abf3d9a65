"""
middleware/auth_middleware.py — Access-token authentication decorator.

The @require_auth decorator:
  1. Reads the access token from the `accessToken` cookie and from the
     Authorization header (expected: "Bearer <token>")
  2. Verifies signature and expiry with the access-token secret; the cookie
     is tried first, the header token only if the cookie does not verify
  3. Confirms the user in the `sub` claim still exists
  4. Attaches user_id (int) to flask.g for the duration of the request
  5. Raises the appropriate 401 error if any step fails

Access tokens are stateless: nothing about them is stored server-side.
Services receive user_id as a plain integer argument, with no knowledge
of JWT, cookies or headers.

Error codes:
  TOKEN_MISSING  (401) — no cookie and no Authorization header
  TOKEN_INVALID  (401) — malformed header, bad signature, bad payload,
                         or the user no longer exists
  TOKEN_EXPIRED  (401) — valid token but exp claim is in the past
"""

from __future__ import annotations

import functools
from typing import Callable

from flask import current_app, g, request

from vidtube.app.errors import ErrorCode, Unauthenticated
from vidtube.app.extensions import db
from vidtube.app.models.user import User
from vidtube.app.services.token_codec import TokenCodec, TokenRejected

ACCESS_COOKIE = "accessToken"


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces access-token authentication.

    Usage:
        @users_bp.route("/me", methods=["PATCH"])
        @require_auth
        def update_account():
            user_id = g.user_id  # always an int when this runs
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def _extract_tokens() -> list[str]:
    """
    Candidate access tokens in the order they are tried: cookie, then header.

    A malformed Authorization header is an error only when there is no
    cookie to fall back on.
    """
    tokens = []
    cookie_token = request.cookies.get(ACCESS_COOKIE)
    if cookie_token:
        tokens.append(cookie_token)

    auth_header = request.headers.get("Authorization", "")
    if not auth_header:
        return tokens

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        if tokens:
            return tokens
        raise Unauthenticated(
            ErrorCode.TOKEN_INVALID,
            "Authorization header must be in the format: Bearer <token>.",
        )
    tokens.append(parts[1])
    return tokens


def _authenticate_request() -> None:
    """
    Performs the full authentication sequence and sets flask.g.user_id.

    Raises Unauthenticated on any failure (never returns a response directly;
    the error propagates to the global Flask error handler).
    """
    raw_tokens = _extract_tokens()
    if not raw_tokens:
        raise Unauthenticated(
            ErrorCode.TOKEN_MISSING,
            "Authentication required. Provide an access token cookie or Bearer header.",
        )

    codec = TokenCodec(algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"))
    secret = current_app.config["ACCESS_TOKEN_SECRET"]
    payload = None
    rejection = None
    for raw_token in raw_tokens:
        try:
            payload = codec.verify(raw_token, secret)
            break
        except TokenRejected as exc:
            rejection = rejection or exc

    if payload is None:
        # Reported against the first candidate tried.
        if rejection.expired:
            raise Unauthenticated(
                ErrorCode.TOKEN_EXPIRED,
                "The access token has expired. Use POST /auth/refresh to obtain a new one.",
            ) from rejection
        raise Unauthenticated(
            ErrorCode.TOKEN_INVALID,
            "The access token is invalid or has been tampered with.",
        ) from rejection

    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        raise Unauthenticated(
            ErrorCode.TOKEN_INVALID,
            "The 'sub' claim in the access token is not a valid user ID.",
        )

    if db.session.get(User, user_id) is None:
        raise Unauthenticated(
            ErrorCode.TOKEN_INVALID,
            "Invalid access token.",
        )

    g.user_id = user_id
