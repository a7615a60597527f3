"""Unit tests for API key authentication module."""

import asyncio
from unittest.mock import patch

import pytest

from simple_throttle.core.auth import parse_api_keys, validate_api_key, verify_api_key
from simple_throttle.core.errors import AuthenticationAppError


class TestParseAPIKeys:
    """Test API key parsing utility function."""

    def test_parse_multiple_keys_with_whitespace(self) -> None:
        assert parse_api_keys("key1 , key2  ,  key3") == {"key1", "key2", "key3"}

    def test_parse_removes_duplicate_keys(self) -> None:
        assert parse_api_keys("key1,key2,key1") == {"key1", "key2"}

    @pytest.mark.parametrize("raw", [None, "", "   ,  ,  "])
    def test_parse_empty_inputs(self, raw) -> None:
        assert parse_api_keys(raw) == set()


class TestValidateAPIKey:
    """Test core API key validation logic."""

    @patch("simple_throttle.core.auth.settings")
    def test_bypassed_when_auth_disabled(self, mock_settings) -> None:
        mock_settings.app.api_key_required = False

        validate_api_key("any-random-key")
        validate_api_key(None)

    @patch("simple_throttle.core.auth.settings")
    def test_raises_when_no_keys_configured(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = None

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("some-key")

        assert exc_info.value.code == "api_keys_not_configured"

    @patch("simple_throttle.core.auth.settings")
    def test_raises_for_missing_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key"

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key(None)

        assert exc_info.value.code == "missing_api_key"

    @patch("simple_throttle.core.auth.settings")
    def test_raises_for_invalid_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key-1,valid-key-2"

        with pytest.raises(AuthenticationAppError) as exc_info:
            validate_api_key("invalid-key")

        assert exc_info.value.code == "invalid_api_key"

    @patch("simple_throttle.core.auth.settings")
    def test_accepts_any_configured_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key-1,valid-key-2"

        validate_api_key("valid-key-1")
        validate_api_key("valid-key-2")


class TestVerifyAPIKeyDependency:
    @patch("simple_throttle.core.auth.settings")
    def test_dependency_accepts_valid_key(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key"

        assert asyncio.run(verify_api_key(x_api_key="valid-key")) is None

    @patch("simple_throttle.core.auth.settings")
    def test_dependency_rejects_missing_header(self, mock_settings) -> None:
        mock_settings.app.api_key_required = True
        mock_settings.app.api_keys = "valid-key"

        with pytest.raises(AuthenticationAppError):
            asyncio.run(verify_api_key(x_api_key=None))
