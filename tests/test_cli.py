"""Tests for the CLI command functions in main.py."""

import json
from unittest.mock import Mock, patch
import pytest

import main
from changelog.prompt_template import STOCK_PROMPTS
from utils.errors import MalformedRepositoryURL, UpstreamError


@pytest.fixture
def context(config):
    """Mocked AppContext with real configuration."""
    context = Mock()
    context.config = config
    return context


class TestGenerateCommand:
    """Tests for generate_changelog."""

    def test_streams_to_stdout(self, context, capsys):
        """Chunks are written to stdout in order."""
        handle = Mock()
        handle.correlation_id = "gen-123"
        handle.chunks.return_value = iter(["## New Features", "\n- Dark mode"])
        context.pipeline.run.return_value = handle

        assert main.generate_changelog(context, "https://github.com/octocat/Hello-World") is True
        assert "## New Features\n- Dark mode\n" in capsys.readouterr().out

    def test_failure_before_output(self, context):
        """Pipeline errors return False."""
        context.pipeline.run.side_effect = MalformedRepositoryURL("Invalid repository URL")

        assert main.generate_changelog(context, "nope") is False

    def test_failure_mid_stream(self, context):
        """A stream error after output returns False."""
        def chunks():
            yield "partial"
            raise UpstreamError("Model stream failed")

        handle = Mock()
        handle.correlation_id = "gen-123"
        handle.chunks.return_value = chunks()
        context.pipeline.run.return_value = handle

        assert main.generate_changelog(context, "https://github.com/o/r") is False


class TestPushCommands:
    """Tests for push_prompts and push_dataset_file."""

    def test_push_prompts(self, context):
        """Every stock prompt is upserted under the configured project."""
        assert main.push_prompts(context) is True

        calls = context.supabase.upsert_prompt.call_args_list
        assert len(calls) == len(STOCK_PROMPTS)
        assert calls[0][0][0]["project"] == "changelog-generator"
        assert calls[0][0][0]["slug"] == "generate-changelog-1"

    def test_push_prompts_without_supabase(self, context):
        """Pushing requires storage."""
        context.supabase = None
        assert main.push_prompts(context) is False

    def test_push_dataset(self, context, tmp_path):
        """A dataset file is loaded and upserted."""
        path = tmp_path / "dataset.json"
        path.write_text(json.dumps([{"input": {"commits": ["a"]}, "expected": "x"}]), encoding="utf-8")

        assert main.push_dataset_file(context, str(path)) is True
        records = context.supabase.upsert_dataset_records.call_args[0][0]
        assert records[0]["id"] == "changelog-record-0"

    def test_push_dataset_bad_file(self, context, tmp_path):
        """A malformed dataset file returns False."""
        path = tmp_path / "dataset.json"
        path.write_text("{}", encoding="utf-8")

        assert main.push_dataset_file(context, str(path)) is False


class TestEvalCommand:
    """Tests for run_evaluation."""

    def test_parameterized_without_judges(self, context, tmp_path):
        """Runs the parameterized task and saves results."""
        path = tmp_path / "dataset.json"
        path.write_text(json.dumps([
            {"input": {"repository_url": "https://github.com/o/r", "since": None, "commits": ["a"]},
             "expected": "## New Features"},
        ]), encoding="utf-8")
        context.llm_client.send_messages.return_value = "## New Features"

        assert main.run_evaluation(
            context, dataset_file=str(path), task_name="parameterized", use_judges=False
        ) is True

        rows = context.supabase.insert_eval_results.call_args[0][0]
        assert rows[0]["scores"]["formatting"]["score"] == 1.0
        assert rows[0]["scores"]["similarity"]["score"] == 1.0

    def test_store_dataset_requires_supabase(self, context):
        """Without a dataset file, storage is required."""
        context.supabase = None
        assert main.run_evaluation(context) is False

    def test_empty_dataset(self, context):
        """An empty dataset is a no-op success."""
        context.supabase.get_dataset_records.return_value = []
        assert main.run_evaluation(context) is True

    def test_parameterized_task_credits_authors_by_default(self, context, tmp_path):
        """The parameterized task includes authors unless told otherwise."""
        path = tmp_path / "dataset.json"
        path.write_text(json.dumps([{"input": {"commits": ["a"]}, "expected": "x"}]), encoding="utf-8")

        with patch("main.make_parameterized_task", return_value=Mock(return_value="x")) as make_task:
            main.run_evaluation(
                context, dataset_file=str(path), task_name="parameterized", use_judges=False, save=False
            )

        assert make_task.call_args[1]["include_authors"] is True


class TestEvalArguments:
    """Tests for eval command-line flags."""

    def _run_eval(self, *flags):
        with patch("sys.argv", ["main.py", "eval", *flags]), \
             patch("main.load_config"), \
             patch("main.setup_logger"), \
             patch("main.AppContext"), \
             patch("main.run_evaluation", return_value=True) as run_evaluation:
            with pytest.raises(SystemExit) as exc_info:
                main.main()

        assert exc_info.value.code == 0
        return run_evaluation.call_args[1]

    def test_include_authors_defaults_on(self):
        """Authors are included without any flag."""
        assert self._run_eval()["include_authors"] is True

    def test_no_include_authors(self):
        """--no-include-authors turns authors off."""
        assert self._run_eval("--no-include-authors")["include_authors"] is False

    def test_include_authors_flag_still_accepted(self):
        """--include-authors is accepted and keeps authors on."""
        assert self._run_eval("--include-authors")["include_authors"] is True
