"""
Tests for settings parsing
"""
import pytest

from smartstore.core.config import Settings


class TestAllowedOrigins:
    """Test ALLOWED_ORIGINS parsing"""

    @pytest.mark.parametrize("raw,expected", [
        ("https://a.shop, https://b.shop", ["https://a.shop", "https://b.shop"]),
        ('["https://a.shop"]', ["https://a.shop"]),
        ("", ["http://localhost:3000"]),
    ])
    def test_parsing(self, raw, expected):
        assert Settings(ALLOWED_ORIGINS=raw).get_allowed_origins() == expected

    def test_environment_overrides_defaults(self, monkeypatch):
        monkeypatch.setenv("WORKFLOW_MAX_STEPS", "7")

        assert Settings().WORKFLOW_MAX_STEPS == 7
