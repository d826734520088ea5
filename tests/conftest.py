"""
Pytest configuration and shared fixtures.
"""

from datetime import datetime, timezone
from typing import Any

import pytest

from pr_cleaner_ai.models import IssueComment, PRMetadata, ReviewComment


@pytest.fixture
def sample_datetime() -> datetime:
    """Provide a sample datetime for testing."""
    return datetime(2025, 10, 14, 10, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def metadata() -> PRMetadata:
    """PR metadata for owner/repo#123."""
    return PRMetadata(owner="owner", repo="repo", pr_number=123)


@pytest.fixture
def make_review_comment(sample_datetime):
    """Factory for review comments with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _make(**overrides: Any) -> ReviewComment:
        comment_id = overrides.pop("id", next(counter))
        values = {
            "id": comment_id,
            "author": "reviewer1",
            "body": f"Comment {comment_id}",
            "created_at": sample_datetime,
            "updated_at": sample_datetime,
            "url": f"https://github.com/owner/repo/pull/123#discussion_r{comment_id}",
            "file_path": "src/app.py",
            "line": 10,
        }
        values.update(overrides)
        return ReviewComment(**values)

    return _make


@pytest.fixture
def make_issue_comment(sample_datetime):
    """Factory for issue comments with sensible defaults."""
    counter = iter(range(1000, 10_000))

    def _make(**overrides: Any) -> IssueComment:
        comment_id = overrides.pop("id", next(counter))
        values = {
            "id": comment_id,
            "author": "reviewer2",
            "body": f"Issue comment {comment_id}",
            "created_at": sample_datetime,
            "updated_at": sample_datetime,
            "url": f"https://github.com/owner/repo/pull/123#issuecomment-{comment_id}",
        }
        values.update(overrides)
        return IssueComment(**values)

    return _make


@pytest.fixture
def mock_pr_data() -> dict[str, Any]:
    """Mock GitHub REST API PR data."""
    return {
        "number": 123,
        "title": "Add dark mode support",
        "state": "open",
        "user": {"login": "testuser"},
        "html_url": "https://github.com/owner/repo/pull/123",
    }


@pytest.fixture
def mock_graphql_data() -> dict[str, Any]:
    """Mock `data` member of the review threads GraphQL response."""
    return {
        "repository": {
            "pullRequest": {
                "title": "Add dark mode support",
                "author": {"login": "testuser"},
                "reviewThreads": {
                    "nodes": [
                        {
                            "isResolved": True,
                            "comments": {
                                "nodes": [
                                    {
                                        "body": "Consider using CSS variables here",
                                        "author": {"login": "reviewer1"},
                                        "createdAt": "2025-10-14T12:30:00Z",
                                        "updatedAt": "2025-10-14T12:30:00Z",
                                        "path": "styles/theme.css",
                                        "line": 42,
                                        "originalLine": 40,
                                        "diffHunk": "@@ -40,3 +40,5 @@",
                                        "replyTo": None,
                                        "url": "https://github.com/owner/repo/pull/123#discussion_r10",
                                    },
                                    {
                                        "body": "Done",
                                        "author": {"login": "testuser"},
                                        "createdAt": "2025-10-14T13:00:00Z",
                                        "updatedAt": "2025-10-14T13:00:00Z",
                                        "path": "styles/theme.css",
                                        "line": 42,
                                        "originalLine": 40,
                                        "diffHunk": "@@ -40,3 +40,5 @@",
                                        "replyTo": {"url": "https://github.com/owner/repo/pull/123#discussion_r10"},
                                        "url": "https://github.com/owner/repo/pull/123#discussion_r11",
                                    },
                                ]
                            },
                        },
                        {
                            "isResolved": False,
                            "comments": {
                                "nodes": [
                                    {
                                        "body": "Missing null check",
                                        "author": None,
                                        "createdAt": "2025-10-14T14:00:00Z",
                                        "updatedAt": "2025-10-14T14:00:00Z",
                                        "path": "components/Button.tsx",
                                        "line": None,
                                        "originalLine": 7,
                                        "diffHunk": "@@ -5,3 +5,4 @@",
                                        "replyTo": None,
                                        "url": "https://github.com/owner/repo/pull/123#discussion_r12",
                                    }
                                ]
                            },
                        },
                    ]
                },
            }
        }
    }


@pytest.fixture
def mock_issue_comments_data() -> list[dict[str, Any]]:
    """Mock GitHub API issue comments (conversation comments)."""
    return [
        {
            "id": 1,
            "user": {"login": "reviewer1"},
            "body": "This looks great! Could you add tests?",
            "created_at": "2025-10-14T12:00:00Z",
            "updated_at": "2025-10-14T12:00:00Z",
            "html_url": "https://github.com/owner/repo/pull/123#issuecomment-1",
        },
        {
            "id": 2,
            "user": {"login": "testuser"},
            "body": "Added tests in latest commit!",
            "created_at": "2025-10-14T13:00:00Z",
            "updated_at": "2025-10-14T13:00:00Z",
            "html_url": "https://github.com/owner/repo/pull/123#issuecomment-2",
        },
    ]


@pytest.fixture
def mock_review_comments_data() -> list[dict[str, Any]]:
    """Mock GitHub REST API review comments (inline code comments)."""
    return [
        {
            "id": 10,
            "user": {"login": "reviewer1"},
            "body": "Consider using CSS variables here",
            "path": "styles/theme.css",
            "line": 42,
            "original_line": 40,
            "diff_hunk": "@@ -40,3 +40,5 @@",
            "created_at": "2025-10-14T12:30:00Z",
            "updated_at": "2025-10-14T12:30:00Z",
            "html_url": "https://github.com/owner/repo/pull/123#discussion_r10",
            "in_reply_to_id": None,
        },
        {
            "id": 11,
            "user": {"login": "testuser"},
            "body": "Done",
            "path": "styles/theme.css",
            "line": 42,
            "original_line": 40,
            "diff_hunk": "@@ -40,3 +40,5 @@",
            "created_at": "2025-10-14T13:00:00Z",
            "updated_at": "2025-10-14T13:00:00Z",
            "html_url": "https://github.com/owner/repo/pull/123#discussion_r11",
            "in_reply_to_id": 10,
        },
    ]
