"""
schemas/auth_schema.py — Marshmallow schemas for authentication endpoints.

Validation responsibility:
  - This file: field presence, types, lengths, formats.
  - services/auth_service.py: DUPLICATE_EMAIL / DUPLICATE_USERNAME checks
    (cross-entity: require a DB lookup — not a schema concern).

All schemas inherit from marshmallow.Schema directly so they can be used
without a Flask application context.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema

from vidtube.app.errors import ErrorCode


def not_blank(value: str) -> None:
    """Rejects strings that are empty once surrounding whitespace is removed."""
    if not value or not value.strip():
        raise ValidationError(ErrorCode.BLANK_FIELD)


BCRYPT_MAX_BYTES = 72


def within_bcrypt_limit(value: str) -> None:
    """bcrypt refuses input over 72 bytes; the limit is on UTF-8 bytes, not characters."""
    if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes long.")


_password_rules = [not_blank, within_bcrypt_limit]


class RegisterSchema(Schema):
    """
    POST /auth/register (multipart form fields; files are handled separately)

    Every field is required and must not be blank. Usernames and emails are
    lowercased by the store, not here.
    """

    full_name = fields.Str(
        required=True,
        validate=[not_blank, validate.Length(max=100)],
    )

    username = fields.Str(
        required=True,
        validate=[
            not_blank,
            validate.Length(max=50),
            validate.Regexp(
                r"^\s*[a-zA-Z0-9_.]+\s*$",
                error="Username may only contain letters, numbers, dots, and underscores.",
            ),
        ],
    )

    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )

    password = fields.Str(required=True, load_only=True, validate=_password_rules)


class LoginSchema(Schema):
    """
    POST /auth/login

    Accepts a username or an email (either one) plus the password.
    Credential correctness is checked by the SessionManager.
    """

    username = fields.Str(load_default=None)
    email = fields.Str(load_default=None)
    password = fields.Str(required=True, load_only=True, validate=not_blank)

    @validates_schema
    def require_identifier(self, data: dict, **kwargs) -> None:
        if not (data.get("username") or "").strip() and not (data.get("email") or "").strip():
            raise ValidationError(ErrorCode.IDENTIFIER_REQUIRED)


class RefreshTokenSchema(Schema):
    """
    POST /auth/refresh

    The refresh token may instead arrive in the `refreshToken` cookie, so the
    body field is optional here; the SessionManager rejects a missing token.
    """

    refresh_token = fields.Str(load_default=None)


class ChangePasswordSchema(Schema):
    """POST /auth/change-password"""

    old_password = fields.Str(required=True, load_only=True, validate=not_blank)
    new_password = fields.Str(required=True, load_only=True, validate=_password_rules)
