"""
schemas/user_schema.py — Marshmallow schemas for profile endpoints.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from vidtube.app.schemas.auth_schema import not_blank


class UpdateAccountSchema(Schema):
    """PATCH /users/me — both fields required, as in registration."""

    full_name = fields.Str(
        required=True,
        validate=[not_blank, validate.Length(max=100)],
    )
    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )
