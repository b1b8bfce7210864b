"""
Feedback recorder - validates and logs thumbs-up/down judgments.

Feedback is linked to a generation only through its correlation id. The
recorder does not check that the generation exists or deduplicate
submissions: every valid submission is logged as its own event.
"""

import logging
import secrets
import string
import time
from typing import Any, Optional

from models.data_models import FeedbackEvent, FeedbackReceipt
from storage.event_logger import EventLogger
from utils.errors import FeedbackValidationError, LoggingUnavailable

logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_feedback_id() -> str:
    """Receipt id like 'feedback-1718000000000-k3j9x0a2b'."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"feedback-{int(time.time() * 1000)}-{suffix}"


def _is_valid_score(score: Any) -> bool:
    # bool is an int subclass; JSON true/false are not scores
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        return False
    return score == 0 or score == 1


def _is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def validate_feedback(
    score: Any,
    input: Any,
    output: Any,
    correlation_id: Any,
    comment: Any = None
) -> None:
    """
    Validate a feedback submission. The first failing check wins.

    Raises:
        FeedbackValidationError: With the offending field name
    """
    if not _is_valid_score(score):
        raise FeedbackValidationError("score", "Score must be 0 or 1")

    if not _is_non_empty_string(input):
        raise FeedbackValidationError("input", "Input is required")

    if not _is_non_empty_string(output):
        raise FeedbackValidationError("output", "Output is required")

    if not _is_non_empty_string(correlation_id):
        raise FeedbackValidationError("correlationId", "correlationId is required")

    if comment is not None and not isinstance(comment, str):
        raise FeedbackValidationError("comment", "Comment must be a string")


class FeedbackRecorder:
    """Record user feedback against the generation that produced an output."""

    def __init__(self, event_logger: Optional[EventLogger]):
        """
        Initialize recorder.

        Args:
            event_logger: Logger that stores feedback rows. None means
                logging is not configured and every submission fails with 500.
        """
        self.event_logger = event_logger

    def record_feedback(
        self,
        score: Any,
        input: Any,
        output: Any,
        comment: Any = None,
        correlation_id: Any = None
    ) -> FeedbackReceipt:
        """
        Validate and log a feedback submission.

        Args:
            score: 0 (thumbs down) or 1 (thumbs up)
            input: Repository URL the changelog was generated for
            output: The generated changelog text
            comment: Optional free-text comment
            correlation_id: Id of the originating generation

        Returns:
            FeedbackReceipt with a fresh feedback id and derived category

        Raises:
            FeedbackValidationError: If the submission is invalid (400)
            LoggingUnavailable: If the event logger is missing or the write fails (500)
        """
        validate_feedback(score, input, output, correlation_id, comment)

        event = FeedbackEvent(
            correlation_id=correlation_id,
            score=int(score),
            input=input,
            output=output,
            comment=comment,
        )

        if self.event_logger is None or not self.event_logger.initialized:
            logger.error("Feedback received but event logger is not initialized")
            raise LoggingUnavailable("Feedback logging is not available")

        feedback_id = new_feedback_id()
        self.event_logger.log_feedback(feedback_id, event)

        logger.info(
            f"User feedback received: {event.category} for {input} "
            f"(generation {correlation_id})"
        )

        return FeedbackReceipt(feedback_id=feedback_id, category=event.category)
