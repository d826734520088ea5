"""
GitHub API client for fetching PR comments.

Handles authentication headers, pagination, GraphQL queries, retries and
translation of HTTP failures into typed errors.
"""

import logging
import time
from typing import Any, Optional
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


logger = logging.getLogger(__name__)

BRANCH_PULL_REQUESTS_QUERY = """
query($owner: String!, $repo: String!, $branch: String!) {
  repository(owner: $owner, name: $repo) {
    pullRequests(
      headRefName: $branch
      states: [OPEN, CLOSED, MERGED]
      first: 20
      orderBy: {field: CREATED_AT, direction: DESC}
    ) {
      nodes {
        number
        state
        headRepositoryOwner {
          login
        }
      }
    }
  }
}
"""


class GitHubAPIError(Exception):
    """Base exception for GitHub API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None, response: Optional[dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class RateLimitError(GitHubAPIError):
    """Raised when GitHub API rate limit is exceeded."""

    pass


class AuthenticationError(GitHubAPIError):
    """Raised when authentication fails or the token has expired."""

    pass


class InsufficientScopeError(GitHubAPIError):
    """Raised when the token lacks permission for the requested resource."""

    pass


class NotFoundError(GitHubAPIError):
    """Raised when the PR or repository does not exist or is not visible."""

    pass


class NetworkError(GitHubAPIError):
    """Raised on connection failures, DNS errors and timeouts."""

    pass


class MalformedResponseError(GitHubAPIError):
    """Raised when a response does not have the expected shape."""

    pass


class GitHubClient:
    """Client for the GitHub REST and GraphQL APIs."""

    DEFAULT_HOSTNAME = "github.com"
    API_VERSION = "2022-11-28"

    def __init__(self, token: str, owner: str, repo: str, hostname: str = DEFAULT_HOSTNAME, timeout: int = 30):
        """
        Initialize GitHub API client.

        Args:
            token: GitHub token (as handed out by `gh auth token`)
            owner: Repository owner (username or organization)
            repo: Repository name
            hostname: GitHub host, github.com or a GitHub Enterprise server
            timeout: Request timeout in seconds
        """
        self.token = token
        self.owner = owner
        self.repo = repo
        self.hostname = hostname
        self.timeout = timeout

        if hostname == self.DEFAULT_HOSTNAME:
            self.base_url = "https://api.github.com"
            self.graphql_url = "https://api.github.com/graphql"
        else:
            self.base_url = f"https://{hostname}/api/v3"
            self.graphql_url = f"https://{hostname}/api/graphql"

        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy."""
        session = requests.Session()

        # Retry strategy: retry on connection errors and 5xx server errors
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["GET", "POST"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        session.headers.update(
            {
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": self.API_VERSION,
            }
        )

        return session

    def _request(
        self,
        url: str,
        method: str = "GET",
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Send a request and decode the JSON response.

        Args:
            url: Absolute URL
            method: HTTP method
            params: Query parameters
            json_body: JSON request body

        Returns:
            Decoded response JSON

        Raises:
            RateLimitError: If rate limit is exceeded
            AuthenticationError: On 401
            InsufficientScopeError: On 403
            NotFoundError: On 404
            NetworkError: On connection failures and timeouts
            MalformedResponseError: If the body is not JSON
            GitHubAPIError: For other API errors
        """
        logger.debug(f"{method} {url} with params: {params}")

        try:
            response = self.session.request(method, url, params=params, json=json_body, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"Request timeout after {self.timeout}s") from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"Cannot reach {self.hostname}: {e}") from e
        except requests.exceptions.RequestException as e:
            raise GitHubAPIError(f"Request failed: {str(e)}") from e

        # Check rate limit
        remaining = int(response.headers.get("X-RateLimit-Remaining", 5000))
        if remaining < 10:
            reset_time = int(response.headers.get("X-RateLimit-Reset", 0))
            logger.warning(
                f"API rate limit low: {remaining} requests remaining. "
                f"Resets at {time.strftime('%Y-%m-%d %H:%M:%S', time.localtime(reset_time))}"
            )

        status = response.status_code

        if status == 403 and remaining == 0:
            reset_time = int(response.headers.get("X-RateLimit-Reset", 0))
            wait_time = max(0, reset_time - time.time())
            raise RateLimitError(
                f"Rate limit exceeded. Resets in {wait_time:.0f} seconds",
                status_code=403,
            )

        # Secondary rate limits keep quota but send Retry-After
        retry_after = response.headers.get("Retry-After")
        if status in (403, 429) and retry_after is not None:
            raise RateLimitError(
                f"Secondary rate limit exceeded. Retry after {retry_after} seconds",
                status_code=status,
            )

        if status == 401:
            raise AuthenticationError("Authentication failed", status_code=401)

        if status == 403:
            raise InsufficientScopeError(f"Access forbidden: {url}", status_code=403)

        if status == 404:
            raise NotFoundError(f"Not found: {url}", status_code=404)

        try:
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            raise GitHubAPIError(f"Request failed: {str(e)}", status_code=status) from e

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Response from {url} is not valid JSON", status_code=status) from e

    def _make_request(self, endpoint: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Make a GET request to a REST endpoint.

        Args:
            endpoint: API endpoint (e.g., '/repos/{owner}/{repo}/pulls/{number}')
            params: Query parameters

        Returns:
            Response JSON data
        """
        url = urljoin(self.base_url + "/", endpoint.lstrip("/"))
        return self._request(url, params=params)

    def _paginate(
        self, endpoint: str, params: Optional[dict[str, Any]] = None, per_page: int = 100
    ) -> list[dict[str, Any]]:
        """
        Fetch all pages of a paginated endpoint.

        Args:
            endpoint: API endpoint
            params: Query parameters
            per_page: Results per page (max 100)

        Returns:
            List of all results across all pages

        Raises:
            MalformedResponseError: If a page is not a JSON array
        """
        params = dict(params or {})
        params["per_page"] = min(per_page, 100)
        params["page"] = 1

        all_results: list[dict[str, Any]] = []

        while True:
            logger.debug(f"Fetching page {params['page']} of {endpoint}")
            results = self._make_request(endpoint, params)

            if not results:
                break

            if not isinstance(results, list):
                raise MalformedResponseError(f"Expected a list from {endpoint}, got {type(results).__name__}")

            all_results.extend(results)

            # Check if there are more pages
            if len(results) < params["per_page"]:
                break

            params["page"] += 1

        logger.debug(f"Fetched {len(all_results)} total items from {endpoint}")
        return all_results

    def graphql(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Run a GraphQL query.

        Args:
            query: GraphQL query document
            variables: Query variables

        Returns:
            The `data` member of the response

        Raises:
            MalformedResponseError: If the response carries errors or no data
        """
        payload = self._request(self.graphql_url, method="POST", json_body={"query": query, "variables": variables or {}})

        if not isinstance(payload, dict):
            raise MalformedResponseError("GraphQL response is not an object")

        errors = payload.get("errors")
        if errors:
            messages = "; ".join(str(error.get("message", error)) for error in errors if isinstance(error, dict))
            raise MalformedResponseError(f"GraphQL errors: {messages or errors}", response=payload)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise MalformedResponseError("GraphQL response has no data", response=payload)

        return data

    # PR endpoints

    def get_pull_request(self, pr_number: int) -> dict[str, Any]:
        """
        Get PR metadata.

        Args:
            pr_number: Pull request number

        Returns:
            PR data
        """
        endpoint = f"/repos/{self.owner}/{self.repo}/pulls/{pr_number}"
        return self._make_request(endpoint)

    def get_pr_comments(self, pr_number: int) -> list[dict[str, Any]]:
        """
        Get review comments (inline code comments) on a PR.

        Args:
            pr_number: Pull request number

        Returns:
            List of review comments
        """
        endpoint = f"/repos/{self.owner}/{self.repo}/pulls/{pr_number}/comments"
        return self._paginate(endpoint)

    def get_issue_comments(self, pr_number: int) -> list[dict[str, Any]]:
        """
        Get conversation comments on a PR.

        Note: PRs are issues, so we use the issues endpoint.

        Args:
            pr_number: Pull request number

        Returns:
            List of conversation comments
        """
        endpoint = f"/repos/{self.owner}/{self.repo}/issues/{pr_number}/comments"
        return self._paginate(endpoint)


    def list_pull_requests_for_branch(self, branch: str) -> list[dict[str, Any]]:
        """
        List PRs (any state) of this repository whose head branch has the given name.

        The head may live in this repository or in any fork of it.

        Args:
            branch: Head branch name

        Returns:
            List of PR nodes ({number, state, headRepositoryOwner}), most recently created first

        Raises:
            MalformedResponseError: If the response does not carry a PR list
        """
        variables = {"owner": self.owner, "repo": self.repo, "branch": branch}
        data = self.graphql(BRANCH_PULL_REQUESTS_QUERY, variables)

        pull_requests = (data.get("repository") or {}).get("pullRequests") or {}
        nodes = pull_requests.get("nodes")
        if not isinstance(nodes, list):
            raise MalformedResponseError(f"No pull request list for branch {branch}", response=data)

        return [node for node in nodes if isinstance(node, dict)]
