"""Tests for feedback validation and recording."""

import re
from unittest.mock import Mock
import pytest

from changelog.feedback import FeedbackRecorder, new_feedback_id, validate_feedback
from utils.errors import FeedbackValidationError, LoggingUnavailable


VALID = {
    "score": 1,
    "input": "https://github.com/octocat/Hello-World",
    "output": "## 🚀 New Features\n- Added things",
    "correlation_id": "gen-123",
}


def submit(recorder, **overrides):
    values = dict(VALID)
    values.update(overrides)
    return recorder.record_feedback(**values)


class TestFeedbackId:
    """Tests for new_feedback_id."""

    def test_format(self):
        """Ids look like feedback-<ms>-<9 chars>."""
        assert re.fullmatch(r"feedback-\d{13}-[a-z0-9]{9}", new_feedback_id())

    def test_unique(self):
        """Consecutive ids differ."""
        assert new_feedback_id() != new_feedback_id()


class TestValidateFeedback:
    """Tests for validate_feedback."""

    def test_valid_scores(self):
        """0, 1 and their float forms pass."""
        for score in (0, 1, 0.0, 1.0):
            validate_feedback(score, VALID["input"], VALID["output"], "gen-123")

    def test_invalid_scores(self):
        """Anything other than 0 or 1 fails on the score field."""
        for score in (0.5, 2, -1, "1", None, True, False, [1]):
            with pytest.raises(FeedbackValidationError) as exc_info:
                validate_feedback(score, VALID["input"], VALID["output"], "gen-123")
            assert exc_info.value.field == "score"
            assert exc_info.value.message == "Score must be 0 or 1"

    def test_missing_fields(self):
        """Each required field is checked with its own message."""
        cases = [
            ({"input": None}, "input", "Input is required"),
            ({"input": "  "}, "input", "Input is required"),
            ({"output": ""}, "output", "Output is required"),
            ({"correlation_id": None}, "correlationId", "correlationId is required"),
        ]
        for overrides, field, message in cases:
            values = dict(VALID)
            values.update(overrides)
            with pytest.raises(FeedbackValidationError) as exc_info:
                validate_feedback(**values)
            assert exc_info.value.field == field
            assert exc_info.value.message == message

    def test_score_checked_first(self):
        """With several problems, the score error wins."""
        with pytest.raises(FeedbackValidationError) as exc_info:
            validate_feedback(5, None, None, None)
        assert exc_info.value.field == "score"

    def test_non_string_comment(self):
        """Comments must be strings when present."""
        with pytest.raises(FeedbackValidationError) as exc_info:
            validate_feedback(1, VALID["input"], VALID["output"], "gen-123", comment=42)
        assert exc_info.value.field == "comment"

    def test_validation_errors_are_client_errors(self):
        """Validation failures map to HTTP 400."""
        with pytest.raises(FeedbackValidationError) as exc_info:
            validate_feedback(2, VALID["input"], VALID["output"], "gen-123")
        assert exc_info.value.status_code == 400


class TestFeedbackRecorder:
    """Tests for FeedbackRecorder.record_feedback."""

    def test_positive_feedback(self, mock_event_logger):
        """Score 1 is logged as positive against the generation."""
        recorder = FeedbackRecorder(mock_event_logger)

        receipt = submit(recorder, comment="  Looks great  ")

        assert receipt.category == "positive"
        assert receipt.feedback_id.startswith("feedback-")
        feedback_id, event = mock_event_logger.log_feedback.call_args[0]
        assert feedback_id == receipt.feedback_id
        assert event.correlation_id == "gen-123"
        assert event.score == 1
        assert event.comment == "Looks great"

    def test_negative_feedback(self, mock_event_logger):
        """Score 0 is negative."""
        recorder = FeedbackRecorder(mock_event_logger)

        assert submit(recorder, score=0).category == "negative"

    def test_invalid_submission_not_logged(self, mock_event_logger):
        """Rejected feedback never reaches the logger."""
        recorder = FeedbackRecorder(mock_event_logger)

        with pytest.raises(FeedbackValidationError):
            submit(recorder, score=2)

        mock_event_logger.log_feedback.assert_not_called()

    def test_uninitialized_logger(self, mock_event_logger):
        """Valid feedback fails with LoggingUnavailable when logging is down."""
        mock_event_logger.initialized = False
        recorder = FeedbackRecorder(mock_event_logger)

        with pytest.raises(LoggingUnavailable) as exc_info:
            submit(recorder)

        assert exc_info.value.status_code == 500
        mock_event_logger.log_feedback.assert_not_called()

    def test_no_logger(self):
        """A recorder without a logger rejects valid feedback with 500."""
        with pytest.raises(LoggingUnavailable):
            submit(FeedbackRecorder(None))

    def test_log_write_failure_propagates(self, mock_event_logger):
        """A failed write surfaces as LoggingUnavailable."""
        mock_event_logger.log_feedback.side_effect = LoggingUnavailable("write failed")
        recorder = FeedbackRecorder(mock_event_logger)

        with pytest.raises(LoggingUnavailable):
            submit(recorder)

    def test_duplicates_accepted(self, mock_event_logger):
        """The same submission twice is logged twice with distinct ids."""
        recorder = FeedbackRecorder(mock_event_logger)

        first = submit(recorder)
        second = submit(recorder)

        assert first.feedback_id != second.feedback_id
        assert mock_event_logger.log_feedback.call_count == 2

    def test_unknown_correlation_id_accepted(self, mock_event_logger):
        """Feedback is not checked against existing generations."""
        recorder = FeedbackRecorder(mock_event_logger)

        receipt = submit(recorder, correlation_id="never-generated")

        assert receipt.category == "positive"
        mock_event_logger.log_feedback.assert_called_once()
