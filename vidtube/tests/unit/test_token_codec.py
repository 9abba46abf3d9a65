"""
tests/unit/test_token_codec.py — TokenCodec sign/verify behaviour.

No Flask app, no database.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from vidtube.app.services.token_codec import TokenCodec, TokenCodecError, TokenRejected

SECRET = "unit-test-secret-0123456789abcdefghij"
OTHER_SECRET = "another-secret-0123456789abcdefghijkl"


def test_sign_then_verify_returns_payload_with_standard_claims():
    codec = TokenCodec()
    token = codec.sign({"sub": "7", "username": "alice"}, SECRET, timedelta(minutes=5))

    claims = codec.verify(token, SECRET)

    assert claims["sub"] == "7"
    assert claims["username"] == "alice"
    assert claims["exp"] - claims["iat"] == 300
    assert len(claims["jti"]) == 16


def test_two_tokens_for_same_payload_differ():
    codec = TokenCodec()
    first = codec.sign({"sub": "1"}, SECRET, timedelta(minutes=5))
    second = codec.sign({"sub": "1"}, SECRET, timedelta(minutes=5))
    assert first != second


def test_verify_with_wrong_secret_is_rejected_not_expired():
    codec = TokenCodec()
    token = codec.sign({"sub": "1"}, SECRET, timedelta(minutes=5))

    with pytest.raises(TokenRejected) as exc_info:
        codec.verify(token, OTHER_SECRET)

    assert exc_info.value.expired is False


def test_expired_token_is_rejected_with_expired_flag():
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    token = TokenCodec(clock=lambda: past).sign({"sub": "1"}, SECRET, timedelta(hours=1))

    with pytest.raises(TokenRejected) as exc_info:
        TokenCodec().verify(token, SECRET)

    assert exc_info.value.expired is True


@pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c"])
def test_malformed_token_is_rejected(garbage):
    with pytest.raises(TokenRejected):
        TokenCodec().verify(garbage, SECRET)


def test_token_without_subject_is_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"iat": now, "exp": now + timedelta(minutes=5)},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(TokenRejected):
        TokenCodec().verify(token, SECRET)


def test_unserialisable_payload_raises_codec_error():
    with pytest.raises(TokenCodecError):
        TokenCodec().sign({"sub": "1", "blob": object()}, SECRET, timedelta(minutes=5))
