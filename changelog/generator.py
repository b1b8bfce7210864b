"""
Changelog generator - streams a completion for a rendered prompt.

Generation is a two-phase contract:
1. A StreamHandle is created with its correlation id before anything is
   sent to the model, so callers can hand the id to the client first.
2. open() starts the model stream and pulls the first chunk; chunks() then
   yields the text lazily, in order.

When the stream ends (normally, with an error, or because the client went
away) the generation is logged to the event logger keyed by the
correlation id. Logging is best-effort and never interrupts the stream.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional

from changelog.llm_client import LLMClient
from models.data_models import GenerationEvent, PromptPayload
from storage.event_logger import EventLogger
from utils.errors import UpstreamError

logger = logging.getLogger(__name__)


def new_correlation_id() -> str:
    """Opaque id linking a generation to later feedback."""
    return str(uuid.uuid4())


class StreamHandle:
    """A single changelog generation in progress.

    Attributes:
        correlation_id: Available immediately, before any chunk exists
        payload: The prompt being generated from
        event: Observability record, finalized when the stream ends
    """

    def __init__(
        self,
        correlation_id: str,
        payload: PromptPayload,
        event: GenerationEvent,
        llm_client: LLMClient,
        event_logger: Optional[EventLogger] = None
    ):
        self.correlation_id = correlation_id
        self.payload = payload
        self.event = event
        self.llm_client = llm_client
        self.event_logger = event_logger

        self._stream: Optional[Iterator[str]] = None
        self._first_chunk: Optional[str] = None
        self._parts: List[str] = []
        self._opened = False
        self._consumed = False
        self._finished = False

    @property
    def text(self) -> str:
        """Text produced so far."""
        return "".join(self._parts)

    @property
    def finished(self) -> bool:
        return self._finished

    def open(self) -> None:
        """
        Start the model stream and wait for the first chunk.

        Raises:
            UpstreamError: If the model call fails before any output
        """
        if self._opened:
            return

        self._stream = self.llm_client.stream_chat(
            self.payload.chat_messages(),
            model=self.payload.model,
            temperature=self.payload.temperature,
            max_tokens=self.payload.max_tokens,
        )

        try:
            self._first_chunk = next(self._stream)
        except StopIteration:
            # Empty completion is a valid, if useless, result
            self._first_chunk = None
        except Exception as e:
            logger.error(f"Model call failed for generation {self.correlation_id}: {e}")
            self._finish(error=str(e))
            raise UpstreamError(f"Model completion failed: {e}") from e

        self._opened = True
        logger.debug(f"Stream opened for generation {self.correlation_id}")

    def chunks(self) -> Iterator[str]:
        """
        Yield generated text chunks in order.

        Opens the stream first if needed. An error after output has been
        delivered ends the iteration with UpstreamError; delivered chunks
        are not retracted. The stream can be consumed once; later calls,
        or calls after close(), yield nothing.
        """
        if self._consumed or self._finished:
            return
        if not self._opened:
            self.open()
        self._consumed = True

        error: Optional[str] = None
        try:
            if self._first_chunk:
                first, self._first_chunk = self._first_chunk, None
                self._parts.append(first)
                yield first

            for chunk in self._stream:
                self._parts.append(chunk)
                yield chunk

        except GeneratorExit:
            error = "Stream closed before completion"
            raise
        except Exception as e:
            error = str(e)
            logger.error(
                f"Stream failed for generation {self.correlation_id} "
                f"after {len(self.text)} chars: {e}"
            )
            raise UpstreamError(f"Model stream failed: {e}") from e
        finally:
            self._finish(error=error)

    def __iter__(self) -> Iterator[str]:
        return self.chunks()

    def close(self) -> None:
        """Finalize a generation whose stream was not read to the end."""
        if not self._finished:
            self._finish(error="Stream was never consumed" if self._opened else None)

    def _close_stream(self) -> None:
        close = getattr(self._stream, "close", None)
        if close is None:
            return
        try:
            close()
        except Exception as e:
            logger.warning(f"Failed to close model stream for {self.correlation_id}: {e}")

    def _finish(self, error: Optional[str] = None) -> None:
        """Close the model stream, record the outcome once and log it best-effort."""
        if self._finished:
            return
        self._finished = True
        self._close_stream()

        self.event.output = self.text
        self.event.error = error
        self.event.finished_at = datetime.now(timezone.utc)

        if self.event_logger is None or not self.event_logger.initialized:
            logger.warning(
                f"Event logger unavailable; generation {self.correlation_id} not logged"
            )
            return

        try:
            self.event_logger.log_generation(self.event)
            logger.info(
                f"Logged generation {self.correlation_id} "
                f"({len(self.event.output)} chars{', error' if error else ''})"
            )
        except Exception as e:
            logger.warning(f"Failed to log generation {self.correlation_id}: {e}")


class ChangelogGenerator:
    """Start streamed changelog completions with correlation ids."""

    def __init__(
        self,
        llm_client: LLMClient,
        event_logger: Optional[EventLogger] = None,
        id_factory: Callable[[], str] = new_correlation_id
    ):
        """
        Initialize generator.

        Args:
            llm_client: Client used for the streamed completion
            event_logger: Where finished generations are logged (optional)
            id_factory: Produces correlation ids
        """
        self.llm_client = llm_client
        self.event_logger = event_logger
        self.id_factory = id_factory

    def create_handle(
        self,
        payload: PromptPayload,
        repo_url: str,
        since: Optional[str],
        commit_summaries: List[str]
    ) -> StreamHandle:
        """
        Create a handle with its correlation id without calling the model.

        Args:
            payload: Rendered prompt
            repo_url: Repository URL (logged as input)
            since: Since boundary (logged as input)
            commit_summaries: First lines of the commits (logged as input)

        Returns:
            Unopened StreamHandle
        """
        correlation_id = self.id_factory()

        event = GenerationEvent(
            correlation_id=correlation_id,
            input={
                "repository_url": repo_url,
                "since": since,
                "commits": commit_summaries,
            },
            metadata={
                "prompt_slug": payload.template_slug,
                "prompt_version": payload.template_version,
                "model": payload.model,
                "temperature": payload.temperature,
                "max_tokens": payload.max_tokens,
            },
        )

        return StreamHandle(
            correlation_id=correlation_id,
            payload=payload,
            event=event,
            llm_client=self.llm_client,
            event_logger=self.event_logger,
        )

    def generate(
        self,
        payload: PromptPayload,
        repo_url: str,
        since: Optional[str],
        commit_summaries: List[str]
    ) -> StreamHandle:
        """
        Start a streamed generation.

        Args:
            payload: Rendered prompt
            repo_url: Repository URL
            since: Since boundary
            commit_summaries: First lines of the commits

        Returns:
            Opened StreamHandle; iterate chunks() for the text

        Raises:
            UpstreamError: If the model fails before producing output. The
                error carries the handle's correlation_id.
        """
        handle = self.create_handle(payload, repo_url, since, commit_summaries)
        logger.info(
            f"Starting generation {handle.correlation_id} for {repo_url} "
            f"(model={payload.model})"
        )

        try:
            handle.open()
        except UpstreamError as e:
            e.correlation_id = handle.correlation_id
            raise

        return handle
