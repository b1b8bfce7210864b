"""GitHub API client for fetching recent commit history.

Resolves the "since" boundary for a changelog (latest release, or the
oldest fetched commit when the repository has no releases) and lists the
most recent commits after it.
"""

import logging
import re
import time
from datetime import datetime
from typing import Any, Optional

import requests

from models.data_models import CommitHistory, CommitRecord, RepositoryReference
from utils.errors import MalformedRepositoryURL

logger = logging.getLogger(__name__)

# Accepts https://github.com/owner/repo, github.com/owner/repo(.git), and
# deeper links such as https://github.com/owner/repo/tree/main
GITHUB_URL_PATTERN = re.compile(
    r"^(?:https?://)?(?:www\.)?github\.com/"
    r"(?P<owner>[A-Za-z0-9_.-]+)/(?P<name>[A-Za-z0-9_.-]+?)(?:\.git)?"
    r"(?:[/?#].*)?$",
    re.IGNORECASE,
)

COMMITS_PAGE_SIZE = 20


def parse_repository_url(url: Optional[str]) -> RepositoryReference:
    """
    Parse a GitHub repository URL into owner and name.

    Args:
        url: User-supplied URL (e.g., "https://github.com/octocat/Hello-World")

    Returns:
        RepositoryReference with owner and name

    Raises:
        MalformedRepositoryURL: If the URL has no github.com/owner/name path
    """
    if not url or not isinstance(url, str):
        raise MalformedRepositoryURL("No repository URL provided")

    match = GITHUB_URL_PATTERN.match(url.strip())
    # "." and ".." are path segments, not repository names
    if not match or any(set(match.group(part)) == {"."} for part in ("owner", "name")):
        raise MalformedRepositoryURL(
            f"Invalid repository URL: '{url}'. Expected https://github.com/owner/repo"
        )

    return RepositoryReference(owner=match.group("owner"), name=match.group("name"))


class GitHubFetcher:
    """Fetch release and commit data from the GitHub REST API.

    The token is optional: anonymous requests work for public repositories
    but have a much lower rate limit.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        timeout: float = 30.0,
        wait_on_rate_limit: bool = False
    ):
        """Initialize GitHub API client.

        Args:
            token: Optional GitHub personal access token
            timeout: Per-request timeout in seconds
            wait_on_rate_limit: Sleep until the rate limit resets on 429 instead
                of raising. Only suitable for offline/CLI use.
        """
        self.token = token
        self.timeout = timeout
        self.wait_on_rate_limit = wait_on_rate_limit
        self.base_url = "https://api.github.com"
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28"
        }
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    def _make_github_request(self, url: str, params: Optional[dict] = None) -> requests.Response:
        """Make GitHub API request with optional rate limit handling.

        If rate limited (429) and wait_on_rate_limit is set, waits until the
        rate limit resets and retries. Otherwise the 429 response is returned
        for the caller to raise on.

        Args:
            url: GitHub API URL to request
            params: Optional query parameters

        Returns:
            Response object from requests
        """
        while True:
            response = requests.get(url, headers=self.headers, params=params, timeout=self.timeout)

            # Log rate limit info
            remaining = response.headers.get("X-RateLimit-Remaining")
            limit = response.headers.get("X-RateLimit-Limit")
            if remaining and limit:
                logger.debug(f"Rate limit: {remaining}/{limit} remaining")

            if response.status_code == 429 and self.wait_on_rate_limit:
                reset_time = int(response.headers.get("X-RateLimit-Reset", 0))
                current_time = int(time.time())
                wait_seconds = max(reset_time - current_time + 5, 60)  # +5 second buffer, minimum 60s

                reset_str = datetime.fromtimestamp(reset_time).strftime("%H:%M:%S")
                logger.warning(
                    f"Rate limited! Waiting until {reset_str} "
                    f"({wait_seconds/60:.1f} minutes)..."
                )
                time.sleep(wait_seconds)
                logger.info("Rate limit reset - resuming...")
                continue

            # Return response for caller to handle other status codes
            return response

    def fetch_latest_release(self, owner: str, repo: str) -> Optional[dict[str, Any]]:
        """Fetch the latest published release.

        Args:
            owner: Repository owner (e.g., "octocat")
            repo: Repository name (e.g., "Hello-World")

        Returns:
            Release dictionary (raw GitHub API response), or None if the
            repository has no releases (404).

        Raises:
            requests.HTTPError: On auth, rate limit or other HTTP errors (not 404)
        """
        url = f"{self.base_url}/repos/{owner}/{repo}/releases/latest"

        try:
            response = self._make_github_request(url)

            # 404 just means there are no releases yet
            if response.status_code == 404:
                logger.debug(f"No releases found for {owner}/{repo} (404)")
                return None

            if response.status_code in (401, 403):
                logger.error(
                    f"Authentication error: {response.status_code} - "
                    f"{response.text[:200]}"
                )

            response.raise_for_status()

            release = response.json()
            logger.debug(
                f"Latest release for {owner}/{repo}: "
                f"{release.get('tag_name')} published {release.get('published_at')}"
            )
            return release

        except requests.RequestException as e:
            logger.error(f"Error fetching latest release for {owner}/{repo}: {e}")
            raise

    def fetch_commits(
        self,
        owner: str,
        repo: str,
        since: Optional[str] = None,
        per_page: int = COMMITS_PAGE_SIZE
    ) -> list[dict[str, Any]]:
        """Fetch one page of the most recent commits.

        GitHub returns commits newest-first. Only a single page is fetched;
        a changelog only needs the latest changes.

        Args:
            owner: Repository owner
            repo: Repository name
            since: Optional ISO 8601 timestamp; only commits at or after it
            per_page: Page size (default: 20)

        Returns:
            List of raw commit dictionaries, newest first

        Raises:
            requests.HTTPError: On authentication errors or other HTTP errors
        """
        url = f"{self.base_url}/repos/{owner}/{repo}/commits"
        params: dict[str, Any] = {"per_page": per_page}
        if since:
            params["since"] = since

        try:
            response = self._make_github_request(url, params=params)

            if response.status_code in (401, 403):
                logger.error(
                    f"Authentication error: {response.status_code} - "
                    f"{response.text[:200]}"
                )

            response.raise_for_status()

            commits = response.json()
            logger.debug(f"Fetched {len(commits)} commits from {owner}/{repo} (since={since})")
            return commits

        except requests.RequestException as e:
            logger.error(f"Error fetching commits for {owner}/{repo}: {e}")
            raise

    def fetch_history(self, owner: str, repo: str) -> CommitHistory:
        """Fetch the commits a changelog should cover.

        Steps:
        1. Latest release publish time becomes the since boundary.
        2. No release (404) leaves since unset; other errors propagate.
        3. Fetch up to 20 commits at or after since.
        4. Without a release, since becomes the oldest fetched commit's
           author date.

        Args:
            owner: Repository owner
            repo: Repository name

        Returns:
            CommitHistory with commits (newest first) and since

        Raises:
            requests.RequestException: On any GitHub failure other than a
                missing release
        """
        logger.info(f"Fetching commit history for {owner}/{repo}")

        since: Optional[str] = None

        # Step 1: Latest release (None if the repo has never released)
        release = self.fetch_latest_release(owner, repo)
        if release:
            since = release.get("published_at")

        # Step 2: Most recent commits since the boundary
        raw_commits = self.fetch_commits(owner, repo, since=since)
        commits = [self._to_commit_record(c) for c in raw_commits]

        # Step 3: Fall back to the oldest commit in the page
        if since is None and commits:
            since = commits[-1].date

        logger.info(
            f"Fetched {len(commits)} commits from {owner}/{repo} "
            f"(since: {since if since else 'beginning'})"
        )

        return CommitHistory(commits=commits, since=since)

    def _to_commit_record(self, raw: dict[str, Any]) -> CommitRecord:
        """Convert a raw commits-endpoint entry into a CommitRecord."""
        commit = raw.get("commit") or {}
        author = commit.get("author") or {}
        return CommitRecord(
            sha=(raw.get("sha") or "")[:7],
            message=commit.get("message") or "",
            author=author.get("name"),
            date=author.get("date"),
        )
