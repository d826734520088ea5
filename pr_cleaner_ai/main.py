#!/usr/bin/env python3
"""
pr-cleaner-ai - Main Entry Point

Fetches PR comments from GitHub and writes a markdown report and a JSON
export for an AI coding assistant.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import NoReturn, Optional

from . import __version__, gh_cli
from .collector import CommentCollector
from .config import load_config
from .formatter import MarkdownFormatter, render_json
from .git import GitError, RepoUrlError, get_current_branch, get_remote_url, parse_github_url
from .github_client import (
    AuthenticationError,
    GitHubAPIError,
    GitHubClient,
    InsufficientScopeError,
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    RateLimitError,
)
from .grouping import group_comments
from .models import PRMetadata
from .output import ensure_output_dir, format_statistics, log_additional_rules, write_reports
from .project_setup import initialize_project, run_checks
from .utils import InvalidMetadataError, parse_pr_number, setup_logging, validate_metadata


logger = logging.getLogger(__name__)

COMMANDS = ("fetch", "init", "check")

# Options that take a separate value, so the next token is never a command
VALUE_OPTIONS = ("--log-level", "--hostname", "--pr")


class NoAssociatedPRError(Exception):
    """Raised when the current branch cannot be resolved to a single PR."""

    pass


class CliArgumentParser(argparse.ArgumentParser):
    """Argument parser whose usage errors exit with 1 like every other failure."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for pr-cleaner-ai.

    Args:
        argv: Command line arguments (default: sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    args = parse_args(sys.argv[1:] if argv is None else argv)
    setup_logging(args.log_level)

    project_root = Path.cwd()

    if args.command == "init":
        return init_command(project_root)
    if args.command == "check":
        return check_command(project_root, args.hostname)
    return fetch_command(project_root, args.pr, args.hostname)


def parse_args(argv: list[str]) -> argparse.Namespace:
    """
    Parse command line arguments; `fetch` is implied when no command is given.

    Args:
        argv: Command line arguments

    Returns:
        Parsed arguments
    """
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--log-level",
        default=os.getenv("LOG_LEVEL", "INFO"),
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    )
    common.add_argument(
        "--hostname",
        default=GitHubClient.DEFAULT_HOSTNAME,
        help="GitHub host, for GitHub Enterprise Server",
    )

    parser = CliArgumentParser(
        prog="pr-cleaner-ai",
        description="Fetch GitHub Pull Request comments and prepare them for an AI coding assistant.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    fetch_parser = subparsers.add_parser(
        "fetch", parents=[common], help="Fetch comments and write reports (default)"
    )
    fetch_parser.add_argument(
        "--pr",
        default=None,
        help="Pull request number (default: PR of the current branch)",
    )
    subparsers.add_parser("init", parents=[common], help="Set up .gitignore and assistant rules")
    subparsers.add_parser("check", parents=[common], help="Check requirements")

    return parser.parse_args(_command_first(argv))


def _command_first(argv: list[str]) -> list[str]:
    """Move the command in front of global options, inserting `fetch` when there is none."""
    if argv and argv[0] in ("-h", "--help", "--version"):
        return argv

    index = 0
    while index < len(argv):
        token = argv[index]
        if token in COMMANDS:
            return [token, *argv[:index], *argv[index + 1 :]]
        index += 2 if token in VALUE_OPTIONS else 1

    return ["fetch", *argv]


def fetch_command(project_root: Path, pr_arg: Optional[str], hostname: str) -> int:
    """
    Fetch comments for a PR and write the reports.

    Returns:
        Exit code
    """
    pr_url = f"https://{hostname}"

    try:
        gh_cli.check_auth(hostname)

        owner, repo = parse_github_url(get_remote_url(project_root), hostname)
        pr_url = f"https://{hostname}/{owner}/{repo}/pulls"
        client = GitHubClient(token=gh_cli.get_token(hostname), owner=owner, repo=repo, hostname=hostname)

        if pr_arg is not None:
            pr_number = parse_pr_number(pr_arg)
        else:
            pr_number = detect_pr_number(client, project_root)

        metadata = PRMetadata(owner=owner, repo=repo, pr_number=pr_number, hostname=hostname)
        pr_url = metadata.html_url
        validate_metadata(metadata.owner, metadata.repo, metadata.pr_number)

        config = load_config(project_root)

        logger.info(f"Fetching comments for PR #{pr_number} in {metadata.slug}")
        log_additional_rules(config, project_root)

        fetched = CommentCollector(client).fetch_all(metadata)
        metadata = fetched.metadata

        groups, stats = group_comments(fetched.review_comments, fetched.issue_comments)

        if stats.unresolved == 0:
            print("\n📭 No unresolved comments in this PR!")
            if stats.resolved > 0:
                print(f"   ✅ All {stats.resolved} comment(s) are already resolved!")
            print(f"\n🔗 Check PR: {metadata.html_url}\n")
            return 0

        print(f"\n{format_statistics(stats)}\n")

        output_dir = ensure_output_dir(project_root)
        markdown = MarkdownFormatter(metadata, config, project_root).format(groups, stats)
        json_text = render_json(groups, metadata)
        markdown_path, _ = write_reports(output_dir, pr_number, markdown, json_text)

        print(f"✨ Done! Open {markdown_path} in your editor and use the Quick Start Prompt.")
        return 0

    except gh_cli.AuthRequiredError as e:
        return _fail(str(e), e.hint)

    except RepoUrlError as e:
        return _fail(str(e), "Make sure remote 'origin' points at a GitHub repository")

    except GitError as e:
        return _fail(f"Git error: {e}", "Run pr-cleaner-ai inside a git repository with an 'origin' remote")

    except InvalidMetadataError as e:
        return _fail(str(e), e.hint)

    except NoAssociatedPRError as e:
        return _fail(
            str(e),
            "Create a PR for this branch first, or specify the PR number: pr-cleaner-ai fetch --pr=123",
        )

    except NotFoundError as e:
        return _fail(
            f"PR not found: {e}",
            f"Check that the PR exists and that you have access: {pr_url}\n"
            "Try: gh auth refresh",
        )

    except AuthenticationError as e:
        return _fail(f"Unauthorized: {e}", "Your authentication may have expired. Try: gh auth login")

    except RateLimitError as e:
        return _fail(f"GitHub API rate limit exceeded: {e}", "Wait for the rate limit to reset and try again")

    except InsufficientScopeError as e:
        return _fail(f"Forbidden: {e}", "You may not have sufficient permissions. Try: gh auth refresh -s repo")

    except NetworkError as e:
        return _fail(f"Network error: {e}", "Check your internet connection and try again")

    except MalformedResponseError as e:
        return _fail(f"Unexpected response from GitHub: {e}", "Try again; if it persists, run with --log-level=DEBUG")

    except GitHubAPIError as e:
        return _fail(f"GitHub API error: {e}", "Check requirements: pr-cleaner-ai check")

    except OSError as e:
        return _fail(f"Cannot write reports: {e}", "Check permissions of the project directory")

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        print("\nCheck requirements: pr-cleaner-ai check")
        return 1


def detect_pr_number(client: GitHubClient, project_root: Path) -> int:
    """
    Resolve the current branch to its pull request.

    A single open PR wins over closed ones; several candidates are an error.

    Raises:
        NoAssociatedPRError: If there is no branch or no unambiguous PR
    """
    branch = get_current_branch(project_root)
    if not branch:
        raise NoAssociatedPRError("Not on a git branch (detached HEAD)")

    logger.info(f"Looking for a PR associated with branch '{branch}'")
    pull_requests = client.list_pull_requests_for_branch(branch)

    if not pull_requests:
        raise NoAssociatedPRError(f"No PR found for branch: {branch}")

    candidates = pull_requests
    if len(candidates) > 1:
        candidates = [pr for pr in pull_requests if pr.get("state") == "OPEN"]

    if len(candidates) != 1:
        numbers = ", ".join(f"#{pr.get('number')}" for pr in pull_requests)
        raise NoAssociatedPRError(f"Several PRs found for branch {branch}: {numbers}")

    pr_number = candidates[0].get("number")
    if not isinstance(pr_number, int):
        raise MalformedResponseError(f"PR list for branch {branch} has no usable number")

    logger.info(f"Found PR #{pr_number} for branch '{branch}'")
    return pr_number


def init_command(project_root: Path) -> int:
    """
    Prepare the project: assistant rules file and .gitignore entries.

    Returns:
        Exit code
    """
    try:
        initialize_project(project_root)
    except OSError as e:
        return _fail(f"Initialization failed: {e}", "Check permissions of the project directory")

    print("\n✅ Initialization complete!\n")

    try:
        gh_cli.check_auth()
    except gh_cli.AuthRequiredError:
        print("⚠️  GitHub CLI is not installed or not authenticated\n")
        print(gh_cli.INSTALL_HINT)
        print("")
    else:
        print("✅ GitHub CLI is authenticated - ready to use!\n")

    print("📝 How to use:")
    print("   In your assistant: fix PR 123")
    print("   In a terminal:     pr-cleaner-ai fetch --pr=123\n")
    print('💡 Optional: create .pr-cleaner-ai.config.json, e.g. { "autoFix": true }')
    return 0


def check_command(project_root: Path, hostname: str) -> int:
    """
    Report the status of every requirement.

    Returns:
        Exit code, 1 if a required check failed
    """
    results = run_checks(project_root, hostname)

    print("\n🔍 pr-cleaner-ai requirements:\n")
    for result in results:
        if result.ok:
            icon = "✅"
        else:
            icon = "❌" if result.required else "⚠️ "
        detail = f" ({result.detail})" if result.detail else ""
        print(f"   {icon} {result.name}{detail}")
    print("")

    failed = [result.name for result in results if result.required and not result.ok]
    if failed:
        logger.error(f"Missing requirements: {', '.join(failed)}")
        return 1

    print("All required checks passed.")
    return 0


def _fail(message: str, hint: str = "") -> int:
    """Log an unrecoverable error with its remediation hint."""
    logger.error(message)
    if hint:
        print(f"\n💡 {hint}\n")
    return 1


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
