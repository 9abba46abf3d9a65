"""
tests/integration/test_session_lifecycle.py — SessionManager end to end.

Drives the real UserStore, TokenCodec and SessionManager against the test
database, without going through HTTP.
"""

from __future__ import annotations

import pytest

from vidtube.app.errors import Conflict, ErrorCode, Unauthenticated
from vidtube.app.extensions import db
from vidtube.app.services import auth_service
from vidtube.app.services.user_store import to_safe_dict


@pytest.fixture
def ctx(app, media_host):
    with app.app_context():
        yield


def _register_alice(media_host, tmp_path, email: str = "alice@x.com", username: str = "alice"):
    avatar = tmp_path / f"{username}-avatar.png"
    avatar.write_bytes(b"img")
    user = auth_service.register_user(
        full_name="Alice",
        username=username,
        email=email,
        password="p1",
        avatar_path=str(avatar),
        cover_image_path=None,
        store=auth_service.build_user_store(db.session),
        media_host=media_host,
    )
    db.session.commit()
    return user


def test_login_returns_distinct_tokens(ctx, media_host, tmp_path):
    _register_alice(media_host, tmp_path)
    manager = auth_service.build_session_manager(db.session)

    user_id = manager.login("alice", "p1")
    pair = manager.issue(user_id)
    db.session.commit()

    assert pair.access_token
    assert pair.refresh_token
    assert pair.access_token != pair.refresh_token


def test_login_with_wrong_password_is_unauthenticated(ctx, media_host, tmp_path):
    _register_alice(media_host, tmp_path)
    manager = auth_service.build_session_manager(db.session)

    with pytest.raises(Unauthenticated):
        manager.login("alice", "wrong")


def test_refresh_token_is_single_use(ctx, media_host, tmp_path):
    _register_alice(media_host, tmp_path)
    manager = auth_service.build_session_manager(db.session)
    original = manager.issue(manager.login("alice", "p1"))
    db.session.commit()

    user_id, rotated = manager.refresh(original.refresh_token)
    db.session.commit()
    assert rotated.refresh_token != original.refresh_token

    with pytest.raises(Unauthenticated) as exc_info:
        manager.verify_refresh(original.refresh_token)
    assert exc_info.value.code == ErrorCode.REFRESH_TOKEN_USED

    assert manager.verify_refresh(rotated.refresh_token) == user_id


def test_registering_same_email_twice_is_conflict(ctx, media_host, tmp_path):
    _register_alice(media_host, tmp_path)

    with pytest.raises(Conflict) as exc_info:
        _register_alice(media_host, tmp_path, username="alice2")
    assert exc_info.value.code == ErrorCode.DUPLICATE_EMAIL


def test_revoke_persists_empty_slot(ctx, media_host, tmp_path):
    _register_alice(media_host, tmp_path)
    manager = auth_service.build_session_manager(db.session)
    user_id = manager.login("alice", "p1")
    manager.issue(user_id)
    db.session.commit()

    manager.revoke(user_id)
    db.session.commit()
    db.session.expire_all()

    store = auth_service.build_user_store(db.session)
    user = store.find_by_id(user_id)
    assert user.refresh_token is None
    assert "refresh_token" not in to_safe_dict(user)
