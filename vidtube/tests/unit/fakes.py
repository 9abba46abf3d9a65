"""
In-memory stand-ins for the SessionManager's collaborators.

FakeUserStore implements the same lookup/patch/verify surface as UserStore
but keeps users in a dict and passwords in plaintext.
"""

from __future__ import annotations

from types import SimpleNamespace

from vidtube.app.services.user_store import StoreError


class FakeUserStore:

    def __init__(self) -> None:
        self.users: dict[int, SimpleNamespace] = {}
        self.writes: list[tuple[int, str | None]] = []
        self.fail_writes = False

    def add(self, user_id: int, username: str, email: str, password: str) -> SimpleNamespace:
        user = SimpleNamespace(
            id=user_id,
            username=username,
            email=email,
            full_name=username.title(),
            password=password,
            refresh_token=None,
        )
        self.users[user_id] = user
        return user

    def find_by_id(self, user_id):
        return self.users.get(user_id)

    def find_by_identifier(self, *identifiers):
        for user in self.users.values():
            if user.username in identifiers or user.email in identifiers:
                return user
        return None

    def set_refresh_token(self, user_id, token):
        if self.fail_writes:
            raise StoreError("database is down")
        self.writes.append((user_id, token))
        user = self.users.get(user_id)
        if user is not None:
            user.refresh_token = token

    def verify_password(self, user, plaintext):
        return user.password == plaintext
