"""
GitHub REST API client with rate limiting and pagination support.
"""

import logging
from datetime import datetime, timedelta, timezone

import requests

from core.entities import RepositoryPage
from infrastructure.retry_utils import (
    exponential_backoff,
    RateLimiter,
    RateLimitExceeded
)

logger = logging.getLogger(__name__)


class GitHubClient:
    """
    Client for interacting with GitHub's REST API on behalf of the
    authenticated user. Handles authentication and rate limiting.
    """

    API_ENDPOINT = "https://api.github.com"
    MAX_PER_PAGE = 100

    def __init__(self, token: str, timeout: int = 30):
        """
        Initialize GitHub client.

        Args:
            token: GitHub personal access token
            timeout: Seconds to wait for each HTTP response
        """
        if not token:
            raise ValueError("GitHub token required")

        self.token = token
        self.timeout = timeout
        self.rate_limiter = RateLimiter()

        self.headers = {
            "Authorization": f"Bearer {self.token}",
            "Accept": "application/vnd.github+json",
        }

    @exponential_backoff(
        max_retries=5,
        base_delay=2.0,
        max_delay=120.0,
        retry_on=(requests.ConnectionError, requests.Timeout),
    )
    def _get(self, path: str, params: dict = None) -> requests.Response:
        """
        Make a GET request with retry logic.

        Args:
            path: API path, e.g. "/user/repos"
            params: Query parameters

        Returns:
            HTTP response (any status other than an exhausted rate limit)

        Raises:
            RateLimitExceeded: If rate limit is hit
            requests.RequestException: For transport errors after retries
        """
        self.rate_limiter.wait_if_needed()

        response = requests.get(
            f"{self.API_ENDPOINT}{path}",
            params=params,
            headers=self.headers,
            timeout=self.timeout,
        )

        self.rate_limiter.update_from_headers(response.headers)

        if response.status_code in (403, 429) and self.rate_limiter.is_exhausted():
            reset_at = self.rate_limiter.reset_at or (
                datetime.now(timezone.utc) + timedelta(hours=1)
            )
            raise RateLimitExceeded(reset_at)

        return response

    def list_repositories(self, page: int, per_page: int = MAX_PER_PAGE) -> RepositoryPage:
        """
        List one page of the repositories visible to the authenticated user.

        Args:
            page: Page number, starting at 1
            per_page: Repositories per page (max 100)

        Returns:
            RepositoryPage with the raw repository entries; `ok` is False on
            any non-200 answer, transport failure, exhausted rate limit or
            undecodable body
        """
        params = {
            "visibility": "all",
            "page": page,
            "per_page": min(per_page, self.MAX_PER_PAGE),
        }

        logger.info(f"Fetching repositories (page {page})")

        try:
            response = self._get("/user/repos", params=params)
        except (requests.RequestException, RateLimitExceeded) as e:
            logger.error(f"Request for page {page} failed: {e}")
            return RepositoryPage(items=[], ok=False, error=str(e))

        if response.status_code != 200:
            logger.error(
                f"GitHub answered {response.status_code} for page {page}: {response.text[:200]}"
            )
            return RepositoryPage(
                items=[],
                ok=False,
                status_code=response.status_code,
                error=f"HTTP {response.status_code}",
            )

        try:
            items = response.json()
        except ValueError as e:
            logger.error(f"Page {page} is not valid JSON: {e}")
            return RepositoryPage(
                items=[],
                ok=False,
                status_code=response.status_code,
                error=f"invalid JSON body: {e}",
            )

        logger.info(
            f"Fetched {len(items)} repositories. "
            f"Rate limit: {self.rate_limiter.remaining} remaining"
        )
        return RepositoryPage(items=items, ok=True, status_code=200)

    def get_authenticated_user(self) -> str:
        """
        Get the login of the authenticated user.

        Returns:
            User login

        Raises:
            requests.HTTPError: If the token is rejected
        """
        response = self._get("/user")
        response.raise_for_status()

        data = response.json()
        logger.info(f"Authenticated as @{data['login']}")
        return data["login"]
