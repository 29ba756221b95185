"""
Tests for the GitHub REST client and retry utilities.
"""

import time
from datetime import datetime, timedelta, timezone

import pytest
import requests
from unittest.mock import Mock, patch

from core.errors import RemoteListError
from core.use_cases import FetchRepositories
from infrastructure.github_client import GitHubClient
from infrastructure.retry_utils import RateLimiter, RateLimitExceeded, exponential_backoff


def make_response(status_code=200, payload=None, remaining=4999, reset=None):
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else []
    response.text = "body"
    response.headers = {
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(reset or int(time.time()) + 3600),
    }
    return response


class TestGitHubClient:
    """Test GitHubClient functionality."""

    def test_requires_token(self):
        """Test that a token is mandatory."""
        with pytest.raises(ValueError, match="token required"):
            GitHubClient("")

    @patch("infrastructure.github_client.requests.get")
    def test_list_repositories(self, mock_get):
        """Test listing one page of repositories."""
        items = [{"name": "x", "full_name": "acme/x"}]
        mock_get.return_value = make_response(payload=items)

        page = GitHubClient("secret").list_repositories(2, per_page=50)

        assert page.ok is True
        assert page.items == items
        args, kwargs = mock_get.call_args
        assert args[0] == "https://api.github.com/user/repos"
        assert kwargs["params"] == {"visibility": "all", "page": 2, "per_page": 50}
        assert kwargs["headers"]["Authorization"] == "Bearer secret"

    @patch("infrastructure.github_client.requests.get")
    def test_per_page_is_capped(self, mock_get):
        """Test that page size never exceeds GitHub's maximum."""
        mock_get.return_value = make_response()

        GitHubClient("secret").list_repositories(1, per_page=500)

        assert mock_get.call_args.kwargs["params"]["per_page"] == 100

    @patch("infrastructure.github_client.requests.get")
    def test_non_success_status(self, mock_get):
        """Test that a non-200 answer is reported as a failed page."""
        mock_get.return_value = make_response(status_code=401)

        page = GitHubClient("secret").list_repositories(1)

        assert page.ok is False
        assert page.status_code == 401
        assert page.items == []

    @patch("infrastructure.retry_utils.time.sleep")
    @patch("infrastructure.github_client.requests.get")
    def test_transport_errors_are_retried(self, mock_get, mock_sleep):
        """Test that connection errors are retried before succeeding."""
        mock_get.side_effect = [
            requests.ConnectionError("reset"),
            make_response(payload=[{"name": "x"}]),
        ]

        page = GitHubClient("secret").list_repositories(1)

        assert page.ok is True
        assert mock_get.call_count == 2
        mock_sleep.assert_called_once()

    @patch("infrastructure.retry_utils.time.sleep")
    @patch("infrastructure.github_client.requests.get")
    def test_transport_errors_exhausted(self, mock_get, mock_sleep):
        """Test that persistent transport errors give a failed page."""
        mock_get.side_effect = requests.Timeout("slow")

        page = GitHubClient("secret").list_repositories(1)

        assert page.ok is False
        assert "slow" in page.error
        assert mock_get.call_count == 6

    @patch("infrastructure.retry_utils.time.sleep")
    @patch("infrastructure.github_client.requests.get")
    def test_rate_limit_waits_for_reset(self, mock_get, mock_sleep):
        """Test that an exhausted rate limit waits and retries."""
        reset = int(time.time()) + 120
        mock_get.side_effect = [
            make_response(status_code=403, remaining=0, reset=reset),
            make_response(payload=[{"name": "x"}]),
        ]

        page = GitHubClient("secret").list_repositories(1)

        assert page.ok is True
        assert mock_get.call_count == 2
        assert mock_sleep.call_args.args[0] > 60

    @patch("infrastructure.github_client.requests.get")
    def test_forbidden_without_rate_limit(self, mock_get):
        """Test that a plain 403 is not mistaken for a rate limit."""
        mock_get.return_value = make_response(status_code=403, remaining=4000)

        page = GitHubClient("secret").list_repositories(1)

        assert page.ok is False
        assert mock_get.call_count == 1

    @patch("infrastructure.retry_utils.time.sleep")
    @patch("infrastructure.github_client.requests.get")
    def test_stale_rate_limit_reset_fails_page(self, mock_get, mock_sleep):
        """Test that a rate limit whose reset already passed ends as a failed page."""
        reset = int(time.time()) - 10
        mock_get.return_value = make_response(status_code=403, remaining=0, reset=reset)

        with pytest.raises(RemoteListError, match="page 1"):
            FetchRepositories(GitHubClient("secret").list_repositories).execute()

        assert mock_get.call_count == 6

    @patch("infrastructure.github_client.requests.get")
    def test_non_json_body_fails_page(self, mock_get):
        """Test that a 200 answer with an HTML body ends as a failed page."""
        response = make_response()
        response.json.side_effect = requests.exceptions.JSONDecodeError(
            "Expecting value", "<html></html>", 0
        )
        mock_get.return_value = response

        page = GitHubClient("secret").list_repositories(1)

        assert page.ok is False
        assert "invalid JSON" in page.error
        with pytest.raises(RemoteListError):
            FetchRepositories(GitHubClient("secret").list_repositories).execute()

    @patch("infrastructure.github_client.requests.get")
    def test_get_authenticated_user(self, mock_get):
        """Test reading the login of the token owner."""
        mock_get.return_value = make_response(payload={"login": "octocat"})

        assert GitHubClient("secret").get_authenticated_user() == "octocat"
        assert mock_get.call_args.args[0] == "https://api.github.com/user"


class TestExponentialBackoff:
    """Test the retry decorator."""

    @patch("infrastructure.retry_utils.time.sleep")
    def test_unlisted_errors_propagate(self, mock_sleep):
        """Test that errors outside retry_on are not retried."""
        func = Mock(side_effect=KeyError("x"), __name__="func")
        wrapped = exponential_backoff(retry_on=(ValueError,))(func)

        with pytest.raises(KeyError):
            wrapped()

        assert func.call_count == 1
        mock_sleep.assert_not_called()

    @patch("infrastructure.retry_utils.time.sleep")
    def test_delays_grow(self, mock_sleep):
        """Test exponential delays capped by max_delay."""
        func = Mock(side_effect=ValueError("x"), __name__="func")
        wrapped = exponential_backoff(
            max_retries=4, base_delay=1.0, max_delay=5.0, retry_on=(ValueError,)
        )(func)

        with pytest.raises(ValueError):
            wrapped()

        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0, 4.0, 5.0]
        assert func.call_count == 5

    @patch("infrastructure.retry_utils.time.sleep")
    def test_rate_limit_does_not_use_attempts(self, mock_sleep):
        """Test that waiting for a rate limit reset is not a failed attempt."""
        reset_at = datetime.now(timezone.utc) + timedelta(minutes=5)
        func = Mock(
            side_effect=[RateLimitExceeded(reset_at), RateLimitExceeded(reset_at), "ok"],
            __name__="func",
        )
        wrapped = exponential_backoff(max_retries=1)(func)

        assert wrapped() == "ok"
        assert mock_sleep.call_count == 2


class TestRateLimiter:
    """Test RateLimiter."""

    def test_reads_headers(self):
        """Test that remaining count and reset time come from headers."""
        limiter = RateLimiter()
        limiter.update_from_headers(
            {"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": "1700000000"}
        )

        assert limiter.remaining == 0
        assert limiter.is_exhausted()
        assert limiter.reset_at == datetime.fromtimestamp(1700000000, tz=timezone.utc)

    @patch("infrastructure.retry_utils.time.sleep")
    def test_waits_when_low(self, mock_sleep):
        """Test waiting until reset when few requests remain."""
        limiter = RateLimiter(threshold=10)
        limiter.update_from_headers({
            "X-RateLimit-Remaining": "3",
            "X-RateLimit-Reset": str(int(time.time()) + 30),
        })

        limiter.wait_if_needed()

        mock_sleep.assert_called_once()
        assert limiter.remaining is None

    @patch("infrastructure.retry_utils.time.sleep")
    def test_no_wait_with_budget(self, mock_sleep):
        """Test that no wait happens with plenty of requests left."""
        limiter = RateLimiter(threshold=10)
        limiter.update_from_headers({"X-RateLimit-Remaining": "4000"})

        limiter.wait_if_needed()

        mock_sleep.assert_not_called()
