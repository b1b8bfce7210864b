"""
Application context - every long-lived collaborator, built once.

The context is created at process start and shared by all requests.
Nothing in it holds per-request state; close() flushes the event logger
at shutdown.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from changelog.feedback import FeedbackRecorder
from changelog.generator import ChangelogGenerator
from changelog.llm_client import LLMClient
from changelog.pipeline import ChangelogPipeline
from changelog.prompt_builder import PromptBuilder
from fetchers.github import GitHubFetcher
from models.config_models import Config
from storage.event_logger import EventLogger
from storage.supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Shared, stateless collaborators for the API and CLI."""

    config: Config
    supabase: Optional[SupabaseClient]
    event_logger: EventLogger
    llm_client: LLMClient
    pipeline: ChangelogPipeline
    feedback_recorder: FeedbackRecorder

    @classmethod
    def from_config(cls, config: Config, wait_on_rate_limit: bool = False) -> "AppContext":
        """
        Build every collaborator from configuration.

        A Supabase connection failure leaves the event logger uninitialized
        instead of failing startup: generation still streams (unlogged) and
        feedback answers 500.

        Args:
            config: Validated configuration
            wait_on_rate_limit: Let the GitHub fetcher sleep through 429s (CLI only)
        """
        credentials = config.credentials
        generation = config.generation

        try:
            supabase = SupabaseClient(credentials.supabase_url, credentials.supabase_key)
        except Exception as e:
            logger.error(f"Failed to initialize Supabase client: {e}")
            supabase = None

        event_logger = EventLogger(supabase, project_name=generation.project_name)

        llm_client = LLMClient(
            provider=credentials.llm_provider,
            api_key=credentials.llm_api_key,
            model=generation.default_model,
            temperature=generation.default_temperature,
            timeout=generation.request_timeout,
        )

        fetcher = GitHubFetcher(
            token=credentials.github_token,
            timeout=generation.request_timeout,
            wait_on_rate_limit=wait_on_rate_limit,
        )
        if not credentials.github_token:
            logger.info("GITHUB_TOKEN not set - using anonymous GitHub API rate limits")

        prompt_builder = PromptBuilder(
            prompt_store=supabase,
            project_name=generation.project_name,
            prompt_slug=generation.prompt_slug,
            default_model=generation.default_model,
            default_temperature=generation.default_temperature,
        )

        pipeline = ChangelogPipeline(
            fetcher=fetcher,
            prompt_builder=prompt_builder,
            generator=ChangelogGenerator(llm_client, event_logger),
        )

        return cls(
            config=config,
            supabase=supabase,
            event_logger=event_logger,
            llm_client=llm_client,
            pipeline=pipeline,
            feedback_recorder=FeedbackRecorder(event_logger),
        )

    def close(self) -> None:
        """Flush and stop logging."""
        self.event_logger.close()
