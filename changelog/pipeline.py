"""
Changelog pipeline - orchestrates fetching, prompting and generation.

This is the request-time entry point: repository URL in, opened
StreamHandle out. Each stage runs sequentially; nothing is shared between
requests except the stateless collaborators passed in.
"""

import logging
from typing import Optional

import requests

from changelog.generator import ChangelogGenerator, StreamHandle
from changelog.prompt_builder import PromptBuilder
from fetchers.github import GitHubFetcher, parse_repository_url
from models.data_models import CommitHistory, PromptPayload
from utils.errors import UpstreamError

logger = logging.getLogger(__name__)


class ChangelogPipeline:
    """
    Fetcher -> PromptBuilder -> ChangelogGenerator.

    Has no storage dependencies of its own; logging happens inside the
    generator.
    """

    def __init__(
        self,
        fetcher: GitHubFetcher,
        prompt_builder: PromptBuilder,
        generator: ChangelogGenerator
    ):
        self.fetcher = fetcher
        self.prompt_builder = prompt_builder
        self.generator = generator

    def fetch_history(self, repo_url: Optional[str]) -> CommitHistory:
        """
        Parse the URL and fetch the commits to summarize.

        Raises:
            MalformedRepositoryURL: Before any GitHub call, if the URL is invalid
            UpstreamError: If GitHub fails (other than "no releases")
        """
        ref = parse_repository_url(repo_url)

        try:
            return self.fetcher.fetch_history(ref.owner, ref.name)
        except requests.RequestException as e:
            raise UpstreamError(f"GitHub request failed for {ref.full_name}: {e}") from e

    def prepare(self, repo_url: Optional[str]) -> tuple[CommitHistory, PromptPayload]:
        """
        Fetch history and render the prompt without calling the model.

        Returns:
            Tuple of (commit history, prompt payload)
        """
        history = self.fetch_history(repo_url)
        payload = self.prompt_builder.build_prompt(
            repo_url.strip(),
            history.since,
            history.commits,
        )
        return history, payload

    def run(self, repo_url: Optional[str]) -> StreamHandle:
        """
        Run the full pipeline for one request.

        Args:
            repo_url: Repository URL (e.g., "https://github.com/octocat/Hello-World")

        Returns:
            Opened StreamHandle with correlation_id set

        Raises:
            MalformedRepositoryURL: Invalid URL (400)
            UpstreamError: GitHub, prompt store or model failure (500)
            PromptNotFoundError / PromptTemplateError: Bad prompt configuration (500)
        """
        logger.info(f"Generating changelog for {repo_url}")

        history, payload = self.prepare(repo_url)

        return self.generator.generate(
            payload,
            repo_url=repo_url.strip(),
            since=history.since,
            commit_summaries=[commit.summary for commit in history.commits],
        )
