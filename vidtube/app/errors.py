"""
errors.py — AppError kinds and the error code registry.

Every error returned by the VidTube API uses a code defined here.
Services raise one of the kinds below; they never pick HTTP status codes
themselves. The kind decides the status the global error handler renders:

  BadRequest       400 — caller omitted or malformed required input
  Unauthenticated  401 — credential mismatch; missing/invalid/expired/superseded token
  NotFound         404 — referenced user/channel does not exist
  Conflict         409 — unique identity already taken
  Internal         500 — token generation, persistence or media host fault

Error codes are a versioned contract. Messages are prose and may change.
"""

from __future__ import annotations


class AppError(Exception):

    http_status: int = 500

    def __init__(
            self,
            code: str,
            message: str,
            field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.code    = code
        self.message = message
        self.field   = field  # which request field caused the error

    def to_dict(self) -> dict:
        payload = {
            "code":    self.code,
            "message": self.message,
        }
        if self.field is not None:
            payload["field"] = self.field
        return {"error": payload}

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(code={self.code!r}, "
            f"http_status={self.http_status}, "
            f"message={self.message!r})"
        )


class BadRequest(AppError):
    http_status = 400


class Unauthenticated(AppError):
    http_status = 401


class NotFound(AppError):
    http_status = 404


class Conflict(AppError):
    http_status = 409


class Internal(AppError):
    http_status = 500


# ── Error Code Registry ────────────────────────────────────────────────────
#
# IMPORTANT: these are the string values sent in the API response.
# Do not rename them without a major version bump.
# ──────────────────────────────────────────────────────────────────────────

class ErrorCode:

    # ── Input Errors (400) ─────────────────────────────────────────────────
    MISSING_FIELD              = "MISSING_FIELD"
    INVALID_FIELD              = "INVALID_FIELD"
    BLANK_FIELD                = "BLANK_FIELD"
    IDENTIFIER_REQUIRED        = "IDENTIFIER_REQUIRED"
    FILE_MISSING               = "FILE_MISSING"
    INVALID_OLD_PASSWORD       = "INVALID_OLD_PASSWORD"
    SELF_SUBSCRIPTION          = "SELF_SUBSCRIPTION"

    # ── Conflict Errors (409) ──────────────────────────────────────────────
    DUPLICATE_EMAIL            = "DUPLICATE_EMAIL"
    DUPLICATE_USERNAME         = "DUPLICATE_USERNAME"

    # ── Not Found Errors (404) ─────────────────────────────────────────────
    USER_NOT_FOUND             = "USER_NOT_FOUND"
    CHANNEL_NOT_FOUND          = "CHANNEL_NOT_FOUND"

    # ── Auth Errors ────────────────────────────────────────────────────────
    INVALID_CREDENTIALS        = "INVALID_CREDENTIALS"    # 401
    TOKEN_MISSING              = "TOKEN_MISSING"          # 401 access / 400 refresh
    TOKEN_INVALID              = "TOKEN_INVALID"          # 401
    TOKEN_EXPIRED              = "TOKEN_EXPIRED"          # 401
    REFRESH_TOKEN_INVALID      = "REFRESH_TOKEN_INVALID"  # 401
    REFRESH_TOKEN_USED         = "REFRESH_TOKEN_USED"     # 401: superseded or revoked

    # ── System Errors (500) ────────────────────────────────────────────────
    TOKEN_GENERATION_FAILED    = "TOKEN_GENERATION_FAILED"
    MEDIA_UPLOAD_FAILED        = "MEDIA_UPLOAD_FAILED"
    PAYLOAD_TOO_LARGE          = "PAYLOAD_TOO_LARGE"      # 413, rendered by the app factory
    INTERNAL_ERROR             = "INTERNAL_ERROR"
