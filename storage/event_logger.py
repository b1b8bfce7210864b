"""
Event logger for generation and feedback records.

Built once at process start (see backend.context.AppContext) and passed to
every component that logs, instead of a process-wide global. Rows are
written to Supabase through SupabaseClient.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from models.data_models import FeedbackEvent, GenerationEvent
from storage.supabase_client import SupabaseClient
from utils.errors import LoggingUnavailable

logger = logging.getLogger(__name__)

# Feedback scores are stored under this metric name
FEEDBACK_METRIC = "user_rating"


class EventLogger:
    """Write generation and feedback events keyed by correlation id."""

    def __init__(self, supabase: Optional[SupabaseClient], project_name: str):
        """
        Initialize the event logger.

        Args:
            supabase: Storage client, or None when logging is not configured
            project_name: Project name stamped on every record
        """
        self.supabase = supabase
        self.project_name = project_name
        self._closed = False

    @property
    def initialized(self) -> bool:
        """Whether the logger can accept events."""
        return self.supabase is not None and not self._closed

    def _require_initialized(self) -> SupabaseClient:
        if not self.initialized:
            raise LoggingUnavailable("Event logger is not initialized")
        return self.supabase

    def log_generation(self, event: GenerationEvent) -> Dict[str, Any]:
        """
        Log a finished (or failed) generation.

        Args:
            event: Generation event with inputs, output and error

        Returns:
            The stored record

        Raises:
            LoggingUnavailable: If the logger is not initialized or the write fails
        """
        supabase = self._require_initialized()

        record = {
            "correlation_id": event.correlation_id,
            "project": self.project_name,
            "input": event.input,
            "output": event.output,
            "error": event.error,
            "metadata": event.metadata,
            "started_at": event.started_at.isoformat(),
            "finished_at": (event.finished_at or datetime.now(timezone.utc)).isoformat(),
        }

        try:
            return supabase.insert_generation_log(record)
        except Exception as e:
            raise LoggingUnavailable(f"Failed to log generation: {e}") from e

    def log_feedback(self, feedback_id: str, event: FeedbackEvent) -> Dict[str, Any]:
        """
        Log a feedback event linked to a generation.

        Args:
            feedback_id: Receipt id for this submission
            event: Validated feedback event

        Returns:
            The stored record

        Raises:
            LoggingUnavailable: If the logger is not initialized or the write fails
        """
        supabase = self._require_initialized()

        metadata: Dict[str, Any] = {
            "category": event.category,
            "submitted_at": event.submitted_at.isoformat(),
        }
        if event.comment:
            metadata["comment"] = event.comment

        record = {
            "id": feedback_id,
            "correlation_id": event.correlation_id,
            "project": self.project_name,
            "scores": {FEEDBACK_METRIC: event.score},
            "metadata": metadata,
            "input": event.input,
            "output": event.output,
        }

        try:
            return supabase.insert_feedback_log(record)
        except Exception as e:
            raise LoggingUnavailable(f"Failed to log feedback: {e}") from e

    def close(self) -> None:
        """Stop accepting events. Writes are synchronous, so nothing is pending."""
        if not self._closed:
            logger.info("Event logger closed")
        self._closed = True
