"""
Local git repository helpers.

Resolves the GitHub repository and current branch of the working copy.
"""

import logging
import re
import subprocess
from pathlib import Path
from typing import Optional, Union

from .utils import REPO_NAME_PATTERN


logger = logging.getLogger(__name__)

MAX_BRANCH_LENGTH = 255


class GitError(Exception):
    """Base exception for git operations."""

    pass


class RepoUrlError(GitError):
    """Raised when the remote URL does not point at a GitHub repository."""

    pass


def run_git_command(args: list[str], repo_path: Union[str, Path] = ".") -> str:
    """
    Run a git command and return output.

    Args:
        args: Arguments after `git`
        repo_path: Working directory for the command

    Returns:
        Command stdout

    Raises:
        GitError: If command fails
    """
    cmd = ["git", *args]
    logger.debug(f"Running git command: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, cwd=repo_path, capture_output=True, check=True, timeout=30)
    except FileNotFoundError as e:
        raise GitError("git is not installed") from e
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode().strip() if e.stderr else ""
        raise GitError(f"Git command failed: {' '.join(cmd)}\n{stderr}") from e
    except subprocess.TimeoutExpired as e:
        raise GitError(f"Git command timeout: {' '.join(cmd)}") from e

    return result.stdout.decode().strip()


def is_git_repository(repo_path: Union[str, Path] = ".") -> bool:
    """Check whether repo_path is inside a git working tree."""
    try:
        run_git_command(["rev-parse", "--git-dir"], repo_path)
    except GitError:
        return False
    return True


def get_remote_url(repo_path: Union[str, Path] = ".", remote: str = "origin") -> str:
    """
    Get the URL of a git remote.

    Raises:
        GitError: If the remote is not configured
    """
    try:
        url = run_git_command(["config", "--get", f"remote.{remote}.url"], repo_path)
    except GitError as e:
        raise GitError(f"Cannot get repository URL for remote '{remote}'") from e

    if not url:
        raise GitError(f"Remote '{remote}' has no URL")
    return url


def parse_github_url(remote_url: str, hostname: str = "github.com") -> tuple[str, str]:
    """
    Extract owner and repository name from a GitHub remote URL.

    Handles HTTPS (https://github.com/owner/repo.git) and SSH
    (git@github.com:owner/repo.git) forms.

    Args:
        remote_url: Remote URL
        hostname: Expected GitHub host

    Returns:
        Tuple of (owner, repo)

    Raises:
        RepoUrlError: If the URL cannot be parsed or has an invalid owner/repo
    """
    if not remote_url:
        raise RepoUrlError("Remote URL is empty")

    pattern = re.escape(hostname) + r"[:/]([^/]+)/([^/]+?)(?:\.git)?/?$"
    match = re.search(pattern, remote_url.strip())
    if not match:
        raise RepoUrlError(f"Cannot parse GitHub repository URL: {remote_url}")

    owner, repo = match.group(1).strip(), match.group(2).strip()

    if not REPO_NAME_PATTERN.match(owner) or not REPO_NAME_PATTERN.match(repo):
        raise RepoUrlError(f"Invalid owner or repo format in URL: {remote_url}")

    return owner, repo


def get_current_branch(repo_path: Union[str, Path] = ".") -> Optional[str]:
    """
    Get the checked-out branch name.

    Returns:
        Branch name, or None on a detached HEAD

    Raises:
        GitError: If git fails or the branch name is unusable
    """
    branch = run_git_command(["branch", "--show-current"], repo_path)
    if not branch:
        return None

    if len(branch) > MAX_BRANCH_LENGTH:
        raise GitError(f"Branch name too long: {branch[:40]}...")

    return branch
