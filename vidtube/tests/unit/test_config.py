"""
tests/unit/test_config.py — Configuration guards.
"""

from __future__ import annotations

from datetime import timedelta
from types import SimpleNamespace

import pytest

from vidtube import config
from vidtube.config import (
    PLACEHOLDER_SECRET,
    validate_production_config,
    validate_token_config,
)


def _app(**values) -> SimpleNamespace:
    return SimpleNamespace(config=values)


class TestValidateTokenConfig:

    def test_testing_config_is_valid(self):
        validate_token_config(_app(
            ACCESS_TOKEN_EXPIRES=config.TestingConfig.ACCESS_TOKEN_EXPIRES,
            REFRESH_TOKEN_EXPIRES=config.TestingConfig.REFRESH_TOKEN_EXPIRES,
        ))

    def test_access_not_shorter_than_refresh_is_rejected(self):
        with pytest.raises(ValueError):
            validate_token_config(_app(
                ACCESS_TOKEN_EXPIRES=timedelta(days=10),
                REFRESH_TOKEN_EXPIRES=timedelta(days=10),
            ))

    def test_non_positive_lifetime_is_rejected(self):
        with pytest.raises(ValueError):
            validate_token_config(_app(
                ACCESS_TOKEN_EXPIRES=timedelta(0),
                REFRESH_TOKEN_EXPIRES=timedelta(days=1),
            ))


class TestValidateProductionConfig:

    def _good(self, **overrides) -> dict:
        values = {
            "SQLALCHEMY_DATABASE_URI": "postgresql://db/vidtube",
            "SECRET_KEY": "s" * 40,
            "ACCESS_TOKEN_SECRET": "a" * 40,
            "REFRESH_TOKEN_SECRET": "r" * 40,
        }
        values.update(overrides)
        return values

    def test_complete_config_passes(self):
        validate_production_config(_app(**self._good()))

    def test_missing_database_url_is_rejected(self):
        with pytest.raises(ValueError, match="DATABASE_URL"):
            validate_production_config(_app(**self._good(SQLALCHEMY_DATABASE_URI="")))

    @pytest.mark.parametrize("key", ["SECRET_KEY", "ACCESS_TOKEN_SECRET", "REFRESH_TOKEN_SECRET"])
    def test_placeholder_secret_is_rejected(self, key):
        with pytest.raises(ValueError, match=key):
            validate_production_config(_app(**self._good(**{key: PLACEHOLDER_SECRET})))

    def test_shared_token_secret_is_rejected(self):
        with pytest.raises(ValueError):
            validate_production_config(_app(**self._good(REFRESH_TOKEN_SECRET="a" * 40)))


class TestConfigSelector:
    """migrations/env.py resolves its database URL through config_by_name."""

    def test_every_environment_is_selectable(self):
        assert set(config.config_by_name) == {"development", "testing", "production"}

    def test_development_names_a_database_url(self):
        assert config.config_by_name["development"].SQLALCHEMY_DATABASE_URI
