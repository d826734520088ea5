"""
Utility functions for pr-cleaner-ai.

Helper functions for logging and input validation.
"""

import logging
import re
import sys
from typing import Any


REPO_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
MAX_PR_NUMBER = 999999


class InvalidMetadataError(ValueError):
    """Raised when owner, repo or PR number fail validation."""

    def __init__(self, message: str, hint: str = ""):
        super().__init__(message)
        self.hint = hint


def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    # Configure root logger
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Reduce noise from requests library
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)


def validate_metadata(owner: str, repo: str, pr_number: Any) -> None:
    """
    Validate the identifying triple of a pull request.

    Args:
        owner: Repository owner
        repo: Repository name
        pr_number: Pull request number

    Raises:
        InvalidMetadataError: If any input is invalid
    """
    if not owner or not repo or pr_number is None:
        raise InvalidMetadataError(
            "Missing required metadata: owner, repo and PR number are all required",
            hint='Example: owner "octocat", repo "hello-world", PR number 123',
        )

    if not REPO_NAME_PATTERN.match(owner) or not REPO_NAME_PATTERN.match(repo):
        raise InvalidMetadataError(
            f'Invalid repository format: "{owner}/{repo}"',
            hint="Expected alphanumeric, '.', '_' or '-' only, e.g. octocat/hello-world",
        )

    if isinstance(pr_number, bool) or not isinstance(pr_number, int):
        raise InvalidMetadataError(
            f'Invalid PR number format: "{pr_number}"',
            hint="Use a numeric ID, e.g. 123",
        )

    if pr_number <= 0 or pr_number > MAX_PR_NUMBER:
        raise InvalidMetadataError(
            f"Invalid PR number: {pr_number}",
            hint=f"PR number must be between 1 and {MAX_PR_NUMBER}",
        )


def parse_pr_number(pr_number_str: str) -> int:
    """
    Parse PR number from string.

    Args:
        pr_number_str: PR number as string

    Returns:
        PR number as integer

    Raises:
        InvalidMetadataError: If PR number is invalid
    """
    value = (pr_number_str or "").strip()
    if not (value.isascii() and value.isdigit()):
        raise InvalidMetadataError(
            f"Invalid PR number format: {pr_number_str!r}",
            hint="PR number must be a positive integer, e.g. pr-cleaner-ai fetch --pr=123",
        )

    pr_number = int(value)
    if pr_number <= 0 or pr_number > MAX_PR_NUMBER:
        raise InvalidMetadataError(
            f"Invalid PR number: {pr_number}",
            hint=f"PR number must be between 1 and {MAX_PR_NUMBER}",
        )
    return pr_number

