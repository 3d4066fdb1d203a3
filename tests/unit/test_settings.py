"""
Unit tests for application settings.

Tests defaults and validation of environment-driven configuration.
"""

import pytest
from pydantic import ValidationError

from src.config.settings import Settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        settings = Settings(_env_file=None)

        assert settings.verified_redirect_path == "/Dashboard"
        assert settings.reset_redirect_path == "/"
        assert settings.redirect_delay_seconds == 4.0
        assert settings.max_active_flows == 1000

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MAX_ACTIVE_FLOWS", "25")

        assert Settings(_env_file=None).max_active_flows == 25

    @pytest.mark.parametrize("value", [0, -1])
    def test_max_active_flows_must_be_positive(self, value: int) -> None:
        with pytest.raises(ValidationError):
            Settings(_env_file=None, max_active_flows=value)
