"""
GitHub CLI (gh) integration.

The gh CLI is the credential source: its authentication state is checked
before any network work and its token is handed to the API client.
"""

import logging
import shutil
import subprocess
from typing import Optional


logger = logging.getLogger(__name__)

INSTALL_HINT = (
    "Install GitHub CLI: https://cli.github.com/\n"
    "Authenticate: gh auth login\n"
    "Verify setup: pr-cleaner-ai check"
)


class GhCliError(Exception):
    """Base exception for gh CLI operations."""

    pass


class AuthRequiredError(GhCliError):
    """Raised when gh is missing or not authenticated."""

    def __init__(self, message: str, hint: str = INSTALL_HINT):
        super().__init__(message)
        self.hint = hint


def is_installed() -> bool:
    """Check whether the gh executable is on PATH."""
    return shutil.which("gh") is not None


def run_gh_command(args: list[str], timeout: int = 30) -> str:
    """
    Run a gh command and return its output.

    Args:
        args: Arguments after `gh`
        timeout: Seconds before the command is abandoned

    Returns:
        Command stdout

    Raises:
        GhCliError: If the command fails or gh is not installed
    """
    cmd = ["gh", *args]
    logger.debug(f"Running gh command: {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, capture_output=True, check=True, timeout=timeout)
    except FileNotFoundError as e:
        raise GhCliError("GitHub CLI (gh) is not installed") from e
    except subprocess.CalledProcessError as e:
        stderr = e.stderr.decode().strip() if e.stderr else ""
        raise GhCliError(f"gh command failed: {' '.join(cmd)}\n{stderr}") from e
    except subprocess.TimeoutExpired as e:
        raise GhCliError(f"gh command timeout: {' '.join(cmd)}") from e

    return result.stdout.decode().strip()


def check_auth(hostname: Optional[str] = None) -> None:
    """
    Verify that gh is installed and authenticated.

    Args:
        hostname: GitHub host to check, all configured hosts when omitted

    Raises:
        AuthRequiredError: If gh is missing or not logged in
    """
    args = ["auth", "status"]
    if hostname:
        args.extend(["--hostname", hostname])

    try:
        run_gh_command(args)
    except GhCliError as e:
        raise AuthRequiredError("GitHub CLI is not installed or not authenticated") from e


def get_token(hostname: Optional[str] = None) -> str:
    """
    Get the token gh uses for API calls.

    Args:
        hostname: GitHub host, the default host when omitted

    Returns:
        OAuth or personal access token

    Raises:
        AuthRequiredError: If no token is available
    """
    args = ["auth", "token"]
    if hostname:
        args.extend(["--hostname", hostname])

    try:
        token = run_gh_command(args)
    except GhCliError as e:
        raise AuthRequiredError("Cannot obtain a token from GitHub CLI") from e

    if not token:
        raise AuthRequiredError("GitHub CLI returned an empty token")

    return token
