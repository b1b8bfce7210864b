"""Tests for evaluation task functions."""

from unittest.mock import Mock
import pytest

from changelog.prompt_builder import PromptBuilder
from evals.tasks import build_parameterized_messages, make_parameterized_task, make_prompt_task


INPUT = {
    "repository_url": "https://github.com/octocat/Hello-World",
    "since": "2024-03-01T12:00:00Z",
    "commits": [
        {"message": "Add dark mode", "author": "mona", "date": "2024-03-02"},
        {"message": "Fix crash", "author": "hubot", "date": "2024-03-03"},
    ],
}


class TestPromptTask:
    """Tests for make_prompt_task."""

    def test_renders_stored_prompt(self, stock_template):
        """The stored template is loaded once and rendered per example."""
        store = Mock()
        store.get_prompt.return_value = stock_template
        builder = PromptBuilder(store, "changelog-generator", "generate-changelog-1", "gpt-4o", 0.2)
        llm_client = Mock()
        llm_client.send_messages.return_value = "## New Features"

        task = make_prompt_task(builder, llm_client)
        assert task(INPUT) == "## New Features"
        task(INPUT)

        store.get_prompt.assert_called_once()
        messages = llm_client.send_messages.call_args[0][0]
        assert messages[0]["content"] == (
            "Changelog for https://github.com/octocat/Hello-World since "
            "2024-03-01T12:00:00Z:\nAdd dark mode\n\nFix crash\n\n"
        )
        assert llm_client.send_messages.call_args[1]["model"] == "gpt-4o"


class TestParameterizedTask:
    """Tests for the parameterized prompt."""

    def test_messages_include_options(self):
        """Detail level, authors and audience shape the user message."""
        messages = build_parameterized_messages(
            INPUT, detail_level="short", include_authors=True, target_audience="marketers"
        )

        assert messages[0]["role"] == "system"
        user = messages[1]["content"]
        assert "Create a short changelog." in user
        assert "Make sure to include the authors" in user
        assert "are marketers" in user
        assert "- Add dark mode (by mona, 2024-03-02)" in user

    def test_authors_excluded(self):
        """Author attribution can be turned off."""
        messages = build_parameterized_messages(INPUT, include_authors=False)
        assert "Do NOT include the authors" in messages[1]["content"]

    def test_task_calls_model(self):
        """The task sends the built messages with the chosen model."""
        llm_client = Mock()
        llm_client.send_messages.return_value = "out"

        task = make_parameterized_task(llm_client, model="gpt-4.1", detail_level="verbose")

        assert task(INPUT) == "out"
        assert llm_client.send_messages.call_args[1]["model"] == "gpt-4.1"

    def test_rejects_unknown_options(self):
        """Unsupported detail levels and audiences raise ValueError."""
        with pytest.raises(ValueError, match="detail_level"):
            make_parameterized_task(Mock(), detail_level="epic")
        with pytest.raises(ValueError, match="target_audience"):
            make_parameterized_task(Mock(), target_audience="lawyers")
