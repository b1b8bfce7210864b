"""Shared pytest fixtures and configuration."""

import pytest
from unittest.mock import Mock

from models.config_models import Config, CredentialsConfig


@pytest.fixture
def test_env(monkeypatch):
    """
    Set valid test environment variables.

    This fixture sets up valid test environment variables so config
    can be loaded during tests without requiring real credentials.
    """
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_test_token_1234567890")
    monkeypatch.setenv("SUPABASE_URL", "https://test-project.supabase.co")
    monkeypatch.setenv("SUPABASE_KEY", "test_supabase_key_1234567890")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-openai-key")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    for name in (
        "LLM_PROVIDER",
        "ANTHROPIC_API_KEY",
        "PROJECT_NAME",
        "PROMPT_SLUG",
        "DEFAULT_MODEL",
        "DEFAULT_TEMPERATURE",
        "JUDGE_MODEL",
        "REQUEST_TIMEOUT_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)

    return {
        "github_token": "ghp_test_token_1234567890",
        "supabase_url": "https://test-project.supabase.co",
        "supabase_key": "test_supabase_key_1234567890",
        "openai_api_key": "sk-test-openai-key",
        "log_level": "DEBUG",
    }


@pytest.fixture
def invalid_env(monkeypatch):
    """
    Set up invalid/missing environment variables for testing validation.
    """
    monkeypatch.setenv("GITHUB_TOKEN", "")
    monkeypatch.setenv("SUPABASE_URL", "")
    monkeypatch.setenv("SUPABASE_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")


@pytest.fixture
def config():
    """A valid Config object with default generation settings."""
    return Config(
        credentials=CredentialsConfig(
            supabase_url="https://test-project.supabase.co",
            supabase_key="test_key",
            openai_api_key="sk-test",
        )
    )


@pytest.fixture
def stock_template():
    """A stored prompt row as returned by the prompt store."""
    return {
        "project": "changelog-generator",
        "slug": "generate-changelog-1",
        "version": "3",
        "model": "gpt-4o",
        "temperature": None,
        "max_tokens": None,
        "messages": [
            {
                "role": "user",
                "content": "Changelog for {{url}} since {{since}}:\n{{commits}}",
            }
        ],
    }


@pytest.fixture
def mock_supabase():
    """Mock SupabaseClient."""
    return Mock()


@pytest.fixture
def mock_event_logger():
    """Mock EventLogger that accepts events."""
    event_logger = Mock()
    event_logger.initialized = True
    return event_logger
