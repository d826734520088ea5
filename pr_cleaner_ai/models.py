"""
Data models for PR comment aggregation.

All models use dataclasses with full type annotations for type safety.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional, Union


GENERAL_FILE = "general"


@dataclass
class ReviewComment:
    """Represents an inline code review comment attached to a file/line."""

    id: int
    author: str
    body: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    url: str

    file_path: Optional[str] = None
    line: Optional[int] = None
    original_line: Optional[int] = None
    diff_hunk: Optional[str] = None
    in_reply_to_id: Optional[int] = None

    # Only known when fetched through the GraphQL review threads query
    resolved: Optional[bool] = None


@dataclass
class IssueComment:
    """Represents a general (non-inline) comment on the PR conversation."""

    id: int
    author: str
    body: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    url: str


@dataclass
class FlatComment:
    """A single comment as it appears inside a group."""

    author: str
    body: str
    created_at: Optional[datetime]
    url: str
    diff_hunk: Optional[str] = None
    resolved: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        data: dict[str, Any] = {
            "author": self.author,
            "body": self.body,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "url": self.url,
        }
        if self.diff_hunk is not None:
            data["diff_hunk"] = self.diff_hunk
        data["resolved"] = self.resolved
        return data


@dataclass
class CommentGroup:
    """All comments sharing one (file, line) location."""

    file: str
    line: Optional[int]
    comments: list[FlatComment] = field(default_factory=list)

    @property
    def is_general(self) -> bool:
        """Check if the group holds file-less comments."""
        return self.file == GENERAL_FILE

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dictionary."""
        return {
            "file": self.file,
            "line": self.line,
            "comments": [comment.to_dict() for comment in self.comments],
        }


@dataclass
class CommentStatistics:
    """Resolution counts over every fetched comment."""

    total: int = 0
    resolved: int = 0
    unresolved: int = 0

    def __post_init__(self) -> None:
        if self.total != self.resolved + self.unresolved:
            raise ValueError(
                f"Inconsistent statistics: total={self.total} "
                f"resolved={self.resolved} unresolved={self.unresolved}"
            )

    @property
    def percent_resolved(self) -> int:
        """Resolved share rounded to a whole percent."""
        if self.total == 0:
            return 0
        return round(self.resolved / self.total * 100)


@dataclass(frozen=True)
class PRMetadata:
    """Identifies the PR being processed plus details learned while fetching."""

    owner: str
    repo: str
    pr_number: int
    title: str = ""
    author: str = ""
    hostname: str = "github.com"

    @property
    def slug(self) -> str:
        """Return the repository slug (owner/repo)."""
        return f"{self.owner}/{self.repo}"

    @property
    def html_url(self) -> str:
        """Web URL of the pull request."""
        return f"https://{self.hostname}/{self.slug}/pull/{self.pr_number}"

    def with_details(self, title: str, author: str) -> "PRMetadata":
        """Return a copy carrying the PR title and author."""
        return replace(self, title=title, author=author)


@dataclass
class Config:
    """User configuration loaded from .pr-cleaner-ai.config.json."""

    auto_fix: bool = False
    additional_rules: list[str] = field(default_factory=list)
    commit_batch_threshold: Optional[int] = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """
        Build a config from parsed JSON, ignoring keys of the wrong type.

        Args:
            data: Parsed config file contents

        Returns:
            Config instance
        """
        auto_fix = data.get("autoFix", False)
        rules = data.get("additionalRules") or []
        threshold = None

        commit_batch = data.get("commitBatch")
        if isinstance(commit_batch, dict):
            threshold_data = commit_batch.get("threshold")
            if isinstance(threshold_data, dict):
                comments = threshold_data.get("comments")
                if isinstance(comments, int) and not isinstance(comments, bool) and comments > 0:
                    threshold = comments

        return cls(
            auto_fix=auto_fix if isinstance(auto_fix, bool) else False,
            additional_rules=[r for r in rules if isinstance(r, str)] if isinstance(rules, list) else [],
            commit_batch_threshold=threshold,
        )


@dataclass
class FetchedComments:
    """Everything the source adapter returns for one PR."""

    review_comments: list[ReviewComment]
    issue_comments: list[IssueComment]
    metadata: PRMetadata
    used_fallback: bool = False


@dataclass
class RichQueryOk:
    """Successful GraphQL fetch carrying resolution status and PR details."""

    comments: list[ReviewComment]
    title: str
    author: str


@dataclass
class RichQueryFallback:
    """GraphQL fetch was unusable; the REST path must be taken."""

    reason: str


RichQueryResult = Union[RichQueryOk, RichQueryFallback]
