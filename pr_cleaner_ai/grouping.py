"""
Comment grouping and statistics.

Merges review comments and issue comments into (file, line) groups and
computes resolution statistics. Resolved review comments are counted in
the statistics but left out of the groups, keeping the report focused on
open work.
"""

from collections.abc import Sequence
from typing import Optional

from .models import (
    GENERAL_FILE,
    CommentGroup,
    CommentStatistics,
    FlatComment,
    IssueComment,
    ReviewComment,
)


GroupKey = tuple[str, int]


def group_key(comment: ReviewComment) -> GroupKey:
    """Return the (file, line) bucket a review comment belongs to."""
    file = comment.file_path if comment.file_path is not None else GENERAL_FILE
    line = comment.line if comment.line is not None else 0
    return file, line


def calculate_statistics(
    review_comments: Sequence[ReviewComment], issue_comments: Sequence[IssueComment]
) -> CommentStatistics:
    """
    Count resolved and unresolved comments over the full collections.

    Issue comments are always unresolved.
    """
    resolved = sum(1 for comment in review_comments if comment.resolved is True)
    unresolved = len(review_comments) - resolved + len(issue_comments)

    return CommentStatistics(
        total=len(review_comments) + len(issue_comments),
        resolved=resolved,
        unresolved=unresolved,
    )


def group_comments(
    review_comments: Sequence[ReviewComment], issue_comments: Sequence[IssueComment]
) -> tuple[list[CommentGroup], CommentStatistics]:
    """
    Group comments by file and line.

    Args:
        review_comments: Inline review comments, in fetch order
        issue_comments: General PR comments, in fetch order

    Returns:
        Tuple of (groups in first-appearance order, statistics)
    """
    stats = calculate_statistics(review_comments, issue_comments)
    grouped: dict[GroupKey, CommentGroup] = {}

    for comment in review_comments:
        if comment.resolved is True:
            continue

        key = group_key(comment)
        if key not in grouped:
            grouped[key] = CommentGroup(file=key[0], line=_display_line(comment))

        grouped[key].comments.append(
            FlatComment(
                author=comment.author,
                body=comment.body,
                created_at=comment.created_at,
                url=comment.url,
                diff_hunk=comment.diff_hunk,
                resolved=bool(comment.resolved),
            )
        )

    if issue_comments:
        general_key = (GENERAL_FILE, 0)
        if general_key not in grouped:
            grouped[general_key] = CommentGroup(file=GENERAL_FILE, line=None)

        for issue_comment in issue_comments:
            grouped[general_key].comments.append(
                FlatComment(
                    author=issue_comment.author,
                    body=issue_comment.body,
                    created_at=issue_comment.created_at,
                    url=issue_comment.url,
                    resolved=False,
                )
            )

    return list(grouped.values()), stats


def _display_line(comment: ReviewComment) -> Optional[int]:
    """Line shown for a group: current line, else the original one."""
    if comment.line is not None:
        return comment.line
    return comment.original_line
