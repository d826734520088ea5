"""
Project setup and environment checks for the `init` and `check` commands.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import gh_cli
from .config import CONFIG_FILENAME, get_config_path
from .git import GitError, get_remote_url, is_git_repository, parse_github_url
from .models import Config
from .output import OUTPUT_DIR_NAMES, gitignore_patterns, is_gitignored


logger = logging.getLogger(__name__)

RULES_FILE = Path(".cursor") / "rules" / "pr-cleaner-ai.mdc"

RULES_TEMPLATE = """---
description: Resolve GitHub Pull Request review comments with pr-cleaner-ai
alwaysApply: false
---

# pr-cleaner-ai

When the user asks to "fix PR <NUMBER>" (or just "PR <NUMBER>"):

1. Run `pr-cleaner-ai fetch --pr=<NUMBER>` in the project root.
2. Open `.pr-cleaner-ai-output/pr-<NUMBER>-comments.md`.
3. Follow the "AI Instructions" section of that file.
4. Work only on comments marked as UNRESOLVED, one at a time.
5. Never commit on your own. Suggest a commit message and wait for approval.

Without a number, run `pr-cleaner-ai fetch` to use the PR of the current branch.
"""

# .gitignore lines that already cover each entry we manage
GITIGNORE_ENTRIES = {
    f"{OUTPUT_DIR_NAMES[0]}/": (
        "# pr-cleaner-ai - output directory",
        gitignore_patterns(OUTPUT_DIR_NAMES[0]),
    ),
    RULES_FILE.as_posix(): (
        "# pr-cleaner-ai - assistant rules file (generated, don't commit)",
        {RULES_FILE.as_posix(), ".cursor/rules/*", ".cursor/rules/", ".cursor/*", ".cursor/", ".cursor"},
    ),
    CONFIG_FILENAME: (
        "# pr-cleaner-ai - user configuration",
        {CONFIG_FILENAME, f"/{CONFIG_FILENAME}"},
    ),
}


@dataclass
class CheckResult:
    """Outcome of one environment check."""

    name: str
    ok: bool
    detail: str = ""
    required: bool = True


def write_rules_file(project_root: Path) -> Path:
    """
    Write the assistant rules file, replacing any earlier version.

    Returns:
        Path of the rules file
    """
    target = project_root / RULES_FILE
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(RULES_TEMPLATE, encoding="utf-8")
    logger.info(f"Wrote assistant rules: {RULES_FILE.as_posix()}")
    return target


def ensure_gitignore_entries(project_root: Path) -> list[str]:
    """
    Add the output directory, rules file and config file to .gitignore.

    Entries already covered by an existing line are left alone.

    Returns:
        Entries that were added
    """
    gitignore = project_root / ".gitignore"
    content = gitignore.read_text(encoding="utf-8") if gitignore.exists() else ""
    existing = {line.strip() for line in content.splitlines()}

    added = []
    for entry, (comment, covering_lines) in GITIGNORE_ENTRIES.items():
        if existing & covering_lines:
            continue

        if content and not content.endswith("\n"):
            content += "\n"
        content += f"\n{comment}\n{entry}\n"
        added.append(entry)

    if added:
        gitignore.write_text(content, encoding="utf-8")
        for entry in added:
            logger.info(f"Added {entry} to .gitignore")

    return added


def initialize_project(project_root: Optional[Path] = None) -> list[str]:
    """
    Set up a project for pr-cleaner-ai.

    Writes the rules file and, inside a git repository, updates .gitignore.

    Returns:
        .gitignore entries that were added
    """
    root = project_root or Path.cwd()
    write_rules_file(root)

    if not is_git_repository(root):
        logger.info("Not a git repository, skipping .gitignore update")
        return []

    return ensure_gitignore_entries(root)


def run_checks(project_root: Optional[Path] = None, hostname: str = "github.com") -> list[CheckResult]:
    """
    Check every requirement for running `fetch`.

    Args:
        project_root: Project directory (default: cwd)
        hostname: GitHub host

    Returns:
        One result per check, in display order
    """
    root = project_root or Path.cwd()
    results = [_check_gh_installed()]

    if results[0].ok:
        results.append(_check_gh_auth(hostname))
    else:
        results.append(CheckResult("GitHub CLI authenticated", False, "gh is not installed"))

    results.append(_check_remote(root, hostname))
    results.append(_check_config(root))

    output_name = next((name for name in OUTPUT_DIR_NAMES if (root / name).is_dir()), OUTPUT_DIR_NAMES[0])
    results.append(
        CheckResult(
            "Output directory ignored by git",
            is_gitignored(root, output_name),
            "run: pr-cleaner-ai init",
            required=False,
        )
    )
    results.append(
        CheckResult(
            "Assistant rules file",
            (root / RULES_FILE).exists(),
            RULES_FILE.as_posix() if (root / RULES_FILE).exists() else "run: pr-cleaner-ai init",
            required=False,
        )
    )

    return results


def _check_gh_installed() -> CheckResult:
    if gh_cli.is_installed():
        return CheckResult("GitHub CLI installed", True)
    return CheckResult("GitHub CLI installed", False, "install from https://cli.github.com/")


def _check_gh_auth(hostname: str) -> CheckResult:
    try:
        gh_cli.check_auth(hostname)
    except gh_cli.AuthRequiredError:
        return CheckResult("GitHub CLI authenticated", False, "run: gh auth login")
    return CheckResult("GitHub CLI authenticated", True)


def _check_remote(root: Path, hostname: str) -> CheckResult:
    try:
        owner, repo = parse_github_url(get_remote_url(root), hostname)
    except GitError as e:
        return CheckResult("GitHub repository remote", False, str(e))
    return CheckResult("GitHub repository remote", True, f"{owner}/{repo}")


def _check_config(root: Path) -> CheckResult:
    """Validate the config file and the rule files it references."""
    config_path = get_config_path(root)
    if not config_path.exists():
        return CheckResult("Config file", True, "not present, using defaults", required=False)

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        return CheckResult("Config file", False, f"invalid JSON: {e}", required=False)

    if not isinstance(data, dict):
        return CheckResult("Config file", False, "must be a JSON object", required=False)

    missing = [rule for rule in Config.from_dict(data).additional_rules if not (root / rule).exists()]
    if missing:
        return CheckResult("Config file", False, f"rule files not found: {', '.join(missing)}", required=False)

    return CheckResult("Config file", True, CONFIG_FILENAME, required=False)
