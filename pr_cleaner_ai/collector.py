"""
PR comment collection.

Fetches review comments and issue comments from GitHub and transforms them
into typed models. Review comments come from the GraphQL review threads
query when possible, which carries resolution status; otherwise from the
REST endpoint, which does not.
"""

import hashlib
import logging
import re
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from datetime import datetime
from typing import Any, Optional

from .github_client import GitHubAPIError, GitHubClient
from .models import (
    FetchedComments,
    IssueComment,
    PRMetadata,
    ReviewComment,
    RichQueryFallback,
    RichQueryOk,
    RichQueryResult,
)
from .utils import validate_metadata


logger = logging.getLogger(__name__)

DISCUSSION_ID_PATTERN = re.compile(r"discussion_r(\d+)")

REVIEW_THREADS_QUERY = """
query($owner: String!, $repo: String!, $prNumber: Int!) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $prNumber) {
      title
      author {
        login
      }
      reviewThreads(first: 100) {
        nodes {
          isResolved
          comments(first: 100) {
            nodes {
              body
              author {
                login
              }
              createdAt
              updatedAt
              path
              line
              originalLine
              diffHunk
              replyTo {
                url
              }
              url
            }
          }
        }
      }
    }
  }
}
"""


class CommentCollector:
    """Collects and transforms PR comments from the GitHub API."""

    def __init__(self, client: GitHubClient):
        """
        Initialize collector with GitHub API client.

        Args:
            client: Configured GitHubClient instance
        """
        self.client = client

    def fetch_all(self, metadata: PRMetadata) -> FetchedComments:
        """
        Fetch review and issue comments concurrently.

        The first failure of either fetch is raised; no partial result is
        returned.

        Args:
            metadata: PR to fetch

        Returns:
            Review comments, issue comments and metadata with title/author

        Raises:
            InvalidMetadataError: If metadata fails validation
            GitHubAPIError: If a fetch fails
        """
        validate_metadata(metadata.owner, metadata.repo, metadata.pr_number)

        with ThreadPoolExecutor(max_workers=2) as executor:
            review_future = executor.submit(self.fetch_review_comments, metadata)
            issue_future = executor.submit(self.fetch_issue_comments, metadata)

            done, _ = wait([review_future, issue_future], return_when=FIRST_EXCEPTION)
            for future in done:
                error = future.exception()
                if error is not None:
                    raise error

            review_comments, updated_metadata, used_fallback = review_future.result()
            issue_comments = issue_future.result()

        logger.info(f"Fetched {len(review_comments)} review comments and {len(issue_comments)} issue comments")

        return FetchedComments(
            review_comments=review_comments,
            issue_comments=issue_comments,
            metadata=updated_metadata,
            used_fallback=used_fallback,
        )

    def fetch_review_comments(self, metadata: PRMetadata) -> tuple[list[ReviewComment], PRMetadata, bool]:
        """
        Fetch inline review comments, preferring the GraphQL path.

        Args:
            metadata: PR to fetch

        Returns:
            Tuple of (comments, metadata with title/author, whether the REST fallback was used)

        Raises:
            GitHubAPIError: If the REST fallback fails as well
        """
        validate_metadata(metadata.owner, metadata.repo, metadata.pr_number)
        logger.info("Fetching review comments...")

        result = self._try_rich_query(metadata)
        if isinstance(result, RichQueryOk):
            return result.comments, metadata.with_details(result.title, result.author), False

        logger.warning(f"Using REST API, resolved status will be unavailable ({result.reason})")
        comments, updated_metadata = self._fetch_basic_review_comments(metadata)
        return comments, updated_metadata, True

    def fetch_issue_comments(self, metadata: PRMetadata) -> list[IssueComment]:
        """
        Fetch general PR conversation comments.

        Raises:
            GitHubAPIError: If the request fails
        """
        validate_metadata(metadata.owner, metadata.repo, metadata.pr_number)
        logger.info("Fetching issue comments...")

        comments_data = self.client.get_issue_comments(metadata.pr_number)

        comments = []
        for comment_data in comments_data:
            comments.append(
                IssueComment(
                    id=comment_data["id"],
                    author=self._login(comment_data.get("user")),
                    body=comment_data.get("body") or "",
                    created_at=self._parse_datetime(comment_data.get("created_at")),
                    updated_at=self._parse_datetime(comment_data.get("updated_at")),
                    url=comment_data.get("html_url") or "",
                )
            )

        return comments

    def _try_rich_query(self, metadata: PRMetadata) -> RichQueryResult:
        """
        Run the review threads query.

        Returns:
            RichQueryOk with thread-stamped comments, or RichQueryFallback with a reason
        """
        variables = {"owner": metadata.owner, "repo": metadata.repo, "prNumber": metadata.pr_number}

        try:
            data = self.client.graphql(REVIEW_THREADS_QUERY, variables)
        except GitHubAPIError as e:
            return RichQueryFallback(reason=f"GraphQL request failed: {e}")

        pull_request = (data.get("repository") or {}).get("pullRequest")
        if not isinstance(pull_request, dict):
            return RichQueryFallback(reason="pull request missing from GraphQL response")

        threads = (pull_request.get("reviewThreads") or {}).get("nodes")
        if not isinstance(threads, list):
            return RichQueryFallback(reason="review threads missing from GraphQL response")

        try:
            comments = self._flatten_threads(threads)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            return RichQueryFallback(reason=f"unexpected review thread shape: {e}")

        # An empty result is indistinguishable from a failed query here
        if not comments:
            return RichQueryFallback(reason="no review comments in GraphQL response")

        return RichQueryOk(
            comments=comments,
            title=pull_request.get("title") or "",
            author=self._login(pull_request.get("author")),
        )

    def _flatten_threads(self, threads: list[dict[str, Any]]) -> list[ReviewComment]:
        """Flatten review threads, stamping every comment with its thread's resolution."""
        comments: list[ReviewComment] = []
        seen_ids: set[int] = set()

        for thread in threads:
            is_resolved = bool(thread.get("isResolved"))
            for node in (thread.get("comments") or {}).get("nodes") or []:
                url = node.get("url") or ""
                body = node.get("body") or ""
                author = self._login(node.get("author"))
                created_at = node.get("createdAt")

                comment_id = self._extract_discussion_id(url)
                if comment_id is None:
                    comment_id = self._synthesize_id(author, created_at, body, seen_ids)
                seen_ids.add(comment_id)

                reply_to = node.get("replyTo")
                comments.append(
                    ReviewComment(
                        id=comment_id,
                        author=author,
                        body=body,
                        created_at=self._parse_datetime(created_at),
                        updated_at=self._parse_datetime(node.get("updatedAt")),
                        url=url,
                        file_path=node.get("path"),
                        line=node.get("line"),
                        original_line=node.get("originalLine"),
                        diff_hunk=node.get("diffHunk"),
                        in_reply_to_id=self._extract_discussion_id(reply_to.get("url")) if reply_to else None,
                        resolved=is_resolved,
                    )
                )

        return comments

    def _fetch_basic_review_comments(self, metadata: PRMetadata) -> tuple[list[ReviewComment], PRMetadata]:
        """
        Fetch review comments from the REST API, without resolution status.

        Returns:
            Tuple of (comments with resolved=False, metadata with best-effort title/author)
        """
        updated_metadata = metadata
        try:
            pr_data = self.client.get_pull_request(metadata.pr_number)
            updated_metadata = metadata.with_details(
                pr_data.get("title") or "",
                self._login(pr_data.get("user")),
            )
        except (GitHubAPIError, AttributeError) as e:
            logger.debug(f"Could not fetch PR details: {e}")

        comments_data = self.client.get_pr_comments(metadata.pr_number)

        comments = []
        for comment_data in comments_data:
            comments.append(
                ReviewComment(
                    id=comment_data["id"],
                    author=self._login(comment_data.get("user")),
                    body=comment_data.get("body") or "",
                    created_at=self._parse_datetime(comment_data.get("created_at")),
                    updated_at=self._parse_datetime(comment_data.get("updated_at")),
                    url=comment_data.get("html_url") or "",
                    file_path=comment_data.get("path"),
                    line=comment_data.get("line"),
                    original_line=comment_data.get("original_line"),
                    diff_hunk=comment_data.get("diff_hunk"),
                    in_reply_to_id=comment_data.get("in_reply_to_id"),
                    resolved=False,
                )
            )

        return comments, updated_metadata

    @staticmethod
    def _extract_discussion_id(url: Optional[str]) -> Optional[int]:
        """Extract the numeric id from a `#discussion_r<id>` permalink."""
        if not url:
            return None
        match = DISCUSSION_ID_PATTERN.search(url)
        return int(match.group(1)) if match else None

    @staticmethod
    def _synthesize_id(author: str, created_at: Optional[str], body: str, taken: set[int]) -> int:
        """
        Derive a stable id for a comment whose permalink has none.

        The id is a hash of author, timestamp and body, bumped until it is
        unused within this fetch.
        """
        digest = hashlib.sha1(f"{author}\0{created_at or ''}\0{body}".encode()).hexdigest()
        comment_id = int(digest[:12], 16)
        while comment_id in taken:
            comment_id += 1
        return comment_id

    @staticmethod
    def _login(user: Optional[dict[str, Any]]) -> str:
        """Login of a user/author object, 'unknown' for deleted accounts."""
        if not user:
            return "unknown"
        return user.get("login") or "unknown"

    @staticmethod
    def _parse_datetime(dt_string: Optional[str]) -> Optional[datetime]:
        """
        Parse ISO 8601 datetime string from GitHub API.

        Args:
            dt_string: ISO 8601 datetime string or None

        Returns:
            Parsed datetime or None
        """
        if not dt_string:
            return None

        # GitHub returns ISO 8601 with Z suffix
        return datetime.fromisoformat(dt_string.replace("Z", "+00:00"))
