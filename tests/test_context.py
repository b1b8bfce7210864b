"""Tests for AppContext construction."""

from unittest.mock import patch

from backend.context import AppContext


class TestAppContextFromConfig:
    """Tests for AppContext.from_config."""

    def test_builds_collaborators(self, config):
        """Every collaborator is built from configuration."""
        with patch("backend.context.SupabaseClient") as mock_supabase, \
             patch("backend.context.LLMClient") as mock_llm:
            context = AppContext.from_config(config)

        mock_supabase.assert_called_once_with("https://test-project.supabase.co", "test_key")
        assert mock_llm.call_args[1]["provider"] == "openai"
        assert mock_llm.call_args[1]["api_key"] == "sk-test"
        assert mock_llm.call_args[1]["timeout"] == 30.0
        assert context.event_logger.initialized
        assert context.pipeline.prompt_builder.prompt_slug == "generate-changelog-1"
        assert context.pipeline.fetcher.wait_on_rate_limit is False
        assert "Authorization" not in context.pipeline.fetcher.headers

    def test_supabase_failure_leaves_logging_uninitialized(self, config):
        """A storage connection failure does not prevent startup."""
        with patch("backend.context.SupabaseClient", side_effect=RuntimeError("bad url")), \
             patch("backend.context.LLMClient"):
            context = AppContext.from_config(config)

        assert context.supabase is None
        assert not context.event_logger.initialized
        assert context.feedback_recorder.event_logger is context.event_logger

    def test_close_stops_logging(self, config):
        """close() shuts the event logger."""
        with patch("backend.context.SupabaseClient"), patch("backend.context.LLMClient"):
            context = AppContext.from_config(config, wait_on_rate_limit=True)

        assert context.pipeline.fetcher.wait_on_rate_limit is True
        context.close()
        assert not context.event_logger.initialized
