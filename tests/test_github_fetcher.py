"""Tests for the GitHub commit history fetcher."""

from unittest.mock import Mock, patch
import pytest
import requests

from fetchers.github import GitHubFetcher, parse_repository_url
from utils.errors import MalformedRepositoryURL


def make_response(status_code=200, json_data=None):
    """Build a mock requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.headers = {"X-RateLimit-Remaining": "4999", "X-RateLimit-Limit": "5000"}
    response.json.return_value = json_data
    response.text = ""
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} Error")
    return response


def make_commit(sha, message, name="Mona", date="2024-01-01T00:00:00Z"):
    """Build a raw commits-endpoint entry."""
    return {
        "sha": sha,
        "commit": {
            "message": message,
            "author": {"name": name, "date": date},
        },
    }


RELEASE_T0 = "2024-03-01T12:00:00Z"


class TestParseRepositoryURL:
    """Tests for parse_repository_url."""

    def test_https_url(self):
        """Standard https URL."""
        repo = parse_repository_url("https://github.com/octocat/Hello-World")
        assert repo.owner == "octocat"
        assert repo.name == "Hello-World"

    def test_variants(self):
        """Scheme-less, .git suffix, trailing slash and deep links."""
        for url in (
            "github.com/octocat/Hello-World",
            "https://github.com/octocat/Hello-World.git",
            "https://github.com/octocat/Hello-World/",
            "https://www.github.com/octocat/Hello-World/tree/main",
            "  https://github.com/octocat/Hello-World  ",
        ):
            assert parse_repository_url(url).full_name == "octocat/Hello-World"

    def test_malformed_urls_rejected(self):
        """Non-GitHub or incomplete URLs raise MalformedRepositoryURL."""
        for url in (
            "not a url",
            "https://gitlab.com/octocat/Hello-World",
            "https://github.com/octocat",
            "https://github.com/../..",
            "https://github.com/octocat/.",
            "github.com/.../Hello-World",
            "",
            None,
        ):
            with pytest.raises(MalformedRepositoryURL):
                parse_repository_url(url)

    def test_dotted_names_allowed(self):
        """Names that merely contain dots are valid."""
        repo = parse_repository_url("https://github.com/octocat/octocat.github.io")
        assert repo.name == "octocat.github.io"

    def test_malformed_url_is_client_error(self):
        """Malformed URLs map to HTTP 400."""
        with pytest.raises(MalformedRepositoryURL) as exc_info:
            parse_repository_url("nope")
        assert exc_info.value.status_code == 400


class TestGitHubFetcherInit:
    """Tests for GitHubFetcher initialization."""

    def test_init_sets_headers_correctly(self):
        """Verify headers are set correctly with token."""
        token = "ghp_test_token_123"
        fetcher = GitHubFetcher(token=token)

        assert fetcher.token == token
        assert fetcher.base_url == "https://api.github.com"
        assert fetcher.headers["Accept"] == "application/vnd.github+json"
        assert fetcher.headers["Authorization"] == f"Bearer {token}"
        assert fetcher.headers["X-GitHub-Api-Version"] == "2022-11-28"

    def test_no_auth_header_without_token(self):
        """Anonymous fetchers send no Authorization header."""
        fetcher = GitHubFetcher()
        assert "Authorization" not in fetcher.headers


class TestFetchLatestRelease:
    """Tests for fetch_latest_release."""

    def test_returns_release(self):
        """A published release is returned as-is."""
        fetcher = GitHubFetcher(token="test_token")
        release = {"tag_name": "v1.0.0", "published_at": RELEASE_T0}

        with patch("requests.get", return_value=make_response(200, release)) as mock_get:
            result = fetcher.fetch_latest_release("octocat", "Hello-World")

        assert result == release
        assert mock_get.call_args[0][0] == "https://api.github.com/repos/octocat/Hello-World/releases/latest"
        assert mock_get.call_args[1]["timeout"] == 30.0

    def test_404_means_no_release(self):
        """A missing release is not an error."""
        fetcher = GitHubFetcher(token="test_token")

        with patch("requests.get", return_value=make_response(404)):
            assert fetcher.fetch_latest_release("octocat", "Hello-World") is None

    def test_other_errors_propagate(self):
        """Auth and server errors are raised."""
        fetcher = GitHubFetcher(token="test_token")

        for status in (401, 403, 500):
            with patch("requests.get", return_value=make_response(status)):
                with pytest.raises(requests.HTTPError):
                    fetcher.fetch_latest_release("octocat", "Hello-World")


class TestFetchCommits:
    """Tests for fetch_commits."""

    def test_request_params(self):
        """A single page of 20 commits is requested, bounded by since."""
        fetcher = GitHubFetcher(token="test_token")

        with patch("requests.get", return_value=make_response(200, [])) as mock_get:
            fetcher.fetch_commits("octocat", "Hello-World", since=RELEASE_T0)

        mock_get.assert_called_once()
        assert mock_get.call_args[0][0] == "https://api.github.com/repos/octocat/Hello-World/commits"
        assert mock_get.call_args[1]["params"] == {"per_page": 20, "since": RELEASE_T0}

    def test_no_since_param_when_unset(self):
        """since is omitted from the query when there is no boundary."""
        fetcher = GitHubFetcher(token="test_token")

        with patch("requests.get", return_value=make_response(200, [])) as mock_get:
            fetcher.fetch_commits("octocat", "Hello-World")

        assert mock_get.call_args[1]["params"] == {"per_page": 20}

    def test_rate_limit_raises_without_waiting(self):
        """A 429 is raised immediately unless waiting is enabled."""
        fetcher = GitHubFetcher(token="test_token")

        with patch("requests.get", return_value=make_response(429)) as mock_get, \
             patch("fetchers.github.time.sleep") as mock_sleep:
            with pytest.raises(requests.HTTPError):
                fetcher.fetch_commits("octocat", "Hello-World")

        assert mock_get.call_count == 1
        mock_sleep.assert_not_called()

    def test_rate_limit_waits_when_enabled(self):
        """With wait_on_rate_limit, a 429 sleeps and retries."""
        fetcher = GitHubFetcher(token="test_token", wait_on_rate_limit=True)
        limited = make_response(429)
        limited.headers["X-RateLimit-Reset"] = "0"

        with patch("requests.get", side_effect=[limited, make_response(200, [])]) as mock_get, \
             patch("fetchers.github.time.sleep") as mock_sleep:
            result = fetcher.fetch_commits("octocat", "Hello-World")

        assert result == []
        assert mock_get.call_count == 2
        mock_sleep.assert_called_once()


class TestFetchHistory:
    """Tests for fetch_history since-boundary resolution."""

    def test_release_sets_since(self):
        """With a release, since is its publish time and commits are newest-first."""
        fetcher = GitHubFetcher(token="test_token")
        commits = [
            make_commit("c3" * 20, "Add feature C\n\nDetails", date="2024-03-04T00:00:00Z"),
            make_commit("c2" * 20, "Fix bug B", date="2024-03-03T00:00:00Z"),
            make_commit("c1" * 20, "Update docs A", date="2024-03-02T00:00:00Z"),
        ]
        responses = [
            make_response(200, {"tag_name": "v1.0.0", "published_at": RELEASE_T0}),
            make_response(200, commits),
        ]

        with patch("requests.get", side_effect=responses) as mock_get:
            history = fetcher.fetch_history("octocat", "Hello-World")

        assert history.since == RELEASE_T0
        assert [c.summary for c in history.commits] == ["Add feature C", "Fix bug B", "Update docs A"]
        assert history.commits[0].message == "Add feature C\n\nDetails"
        assert history.commits[0].sha == "c3c3c3c"
        assert history.commits[0].author == "Mona"
        assert mock_get.call_args_list[1][1]["params"]["since"] == RELEASE_T0

    def test_no_release_uses_oldest_commit_date(self):
        """Without a release, since is the oldest fetched commit's date."""
        fetcher = GitHubFetcher(token="test_token")
        commits = [
            make_commit("b" * 40, "Second", date="2024-02-02T00:00:00Z"),
            make_commit("a" * 40, "First", date="2024-02-01T00:00:00Z"),
        ]
        responses = [make_response(404), make_response(200, commits)]

        with patch("requests.get", side_effect=responses) as mock_get:
            history = fetcher.fetch_history("octocat", "Hello-World")

        assert history.since == "2024-02-01T00:00:00Z"
        assert len(history.commits) == 2
        assert "since" not in mock_get.call_args_list[1][1]["params"]

    def test_no_release_and_no_commits(self):
        """An empty repository yields no commits and no since."""
        fetcher = GitHubFetcher(token="test_token")
        responses = [make_response(404), make_response(200, [])]

        with patch("requests.get", side_effect=responses):
            history = fetcher.fetch_history("octocat", "Hello-World")

        assert history.commits == []
        assert history.since is None

    def test_release_error_stops_before_commits(self):
        """A non-404 release failure propagates and commits are not fetched."""
        fetcher = GitHubFetcher(token="test_token")

        with patch("requests.get", return_value=make_response(500)) as mock_get:
            with pytest.raises(requests.HTTPError):
                fetcher.fetch_history("octocat", "Hello-World")

        assert mock_get.call_count == 1

    def test_commit_error_propagates(self):
        """A commits-endpoint failure propagates."""
        fetcher = GitHubFetcher(token="test_token")
        responses = [make_response(404), make_response(403)]

        with patch("requests.get", side_effect=responses):
            with pytest.raises(requests.HTTPError):
                fetcher.fetch_history("octocat", "Hello-World")

    def test_missing_author_fields(self):
        """Commits without author data still convert."""
        fetcher = GitHubFetcher()
        raw = {"sha": "abcdef1234", "commit": {"message": "Init", "author": None}}
        responses = [make_response(404), make_response(200, [raw])]

        with patch("requests.get", side_effect=responses):
            history = fetcher.fetch_history("octocat", "Hello-World")

        assert history.commits[0].author is None
        assert history.since is None
