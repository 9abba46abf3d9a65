"""
tests/integration/test_subscriptions.py — POST /subscriptions/c/:channel_id
"""

from __future__ import annotations

from .conftest import auth_headers, error_of, login, register


def _toggle(client, token: str, channel_id: int):
    return client.post(f"/api/v1/subscriptions/c/{channel_id}", headers=auth_headers(token))


def test_toggle_subscribes_then_unsubscribes(client):
    bob = register(client, "bob")
    register(client, "alice")
    tokens = login(client, "alice")

    first = _toggle(client, tokens["access_token"], bob["id"])
    assert first.status_code == 200
    assert first.get_json()["data"] == {"channel_id": bob["id"], "subscribed": True}

    second = _toggle(client, tokens["access_token"], bob["id"])
    assert second.get_json()["data"]["subscribed"] is False

    profile = client.get("/api/v1/users/c/bob", headers=auth_headers(tokens["access_token"]))
    assert profile.get_json()["data"]["subscribers_count"] == 0


def test_self_subscription_returns_400(client):
    alice = register(client, "alice")
    tokens = login(client, "alice")

    resp = _toggle(client, tokens["access_token"], alice["id"])
    assert resp.status_code == 400
    assert error_of(resp)["code"] == "SELF_SUBSCRIPTION"


def test_unknown_channel_returns_404(client):
    alice = register(client, "alice")
    tokens = login(client, "alice")

    resp = _toggle(client, tokens["access_token"], alice["id"] + 1000)
    assert resp.status_code == 404
    assert error_of(resp)["code"] == "CHANNEL_NOT_FOUND"
