"""
Output handling: report directory, file writing and console summaries.
"""

import logging
from pathlib import Path
from typing import Optional

from .formatter import progress_bar
from .models import CommentStatistics, Config


logger = logging.getLogger(__name__)

OUTPUT_DIR_NAMES = (".pr-cleaner-ai-output", "pr-cleaner-ai-output")


def report_filenames(pr_number: int) -> tuple[str, str]:
    """Markdown and JSON file names for a PR."""
    return f"pr-{pr_number}-comments.md", f"pr-{pr_number}-comments.json"


def ensure_output_dir(project_root: Optional[Path] = None) -> Path:
    """
    Pick and create the output directory.

    An existing directory among the accepted names wins; otherwise the
    hidden one is created. Warns when .gitignore does not exclude it.

    Args:
        project_root: Project directory (default: cwd)

    Returns:
        Output directory path
    """
    root = project_root or Path.cwd()

    output_dir = next(
        (root / name for name in OUTPUT_DIR_NAMES if (root / name).is_dir()),
        root / OUTPUT_DIR_NAMES[0],
    )
    output_dir.mkdir(parents=True, exist_ok=True)

    if not is_gitignored(root, output_dir.name):
        logger.warning(
            f"Output directory {output_dir.name}/ is not in .gitignore and may appear in Git. "
            "Run: pr-cleaner-ai init"
        )

    return output_dir


def gitignore_patterns(name: str) -> set[str]:
    """.gitignore lines that exclude the top-level directory `name`."""
    return {name, f"{name}/", f"/{name}", f"/{name}/", f"{name}/*", f"/{name}/*"}


def is_gitignored(project_root: Path, name: str) -> bool:
    """
    Check whether a .gitignore line excludes an output directory.

    A project without a .gitignore is treated as ignored, so no warning is
    raised for it.
    """
    gitignore = project_root / ".gitignore"
    if not gitignore.exists():
        return True

    try:
        content = gitignore.read_text(encoding="utf-8")
    except OSError as e:
        logger.debug(f"Cannot read {gitignore}: {e}")
        return True

    lines = {line.strip() for line in content.splitlines()}
    return bool(lines & gitignore_patterns(name))


def write_reports(output_dir: Path, pr_number: int, markdown: str, json_text: str) -> tuple[Path, Path]:
    """
    Write the markdown and JSON reports, overwriting earlier runs.

    Args:
        output_dir: Directory from ensure_output_dir
        pr_number: PR number used in file names
        markdown: Markdown report
        json_text: JSON export

    Returns:
        Tuple of (markdown path, JSON path)
    """
    markdown_name, json_name = report_filenames(pr_number)
    markdown_path = output_dir / markdown_name
    json_path = output_dir / json_name

    existed = markdown_path.exists()
    if existed:
        logger.info("Overwriting existing report with fresh data")

    markdown_path.write_text(markdown, encoding="utf-8")
    json_path.write_text(json_text, encoding="utf-8")

    action = "Updated" if existed else "Saved"
    logger.info(f"{action} markdown: {markdown_path}")
    logger.info(f"{action} JSON: {json_path}")

    return markdown_path, json_path


def format_statistics(stats: CommentStatistics) -> str:
    """Format statistics for the terminal."""
    return "\n".join(
        [
            "📊 Comments Statistics:",
            f"   ✅ Resolved: {stats.resolved}",
            f"   ⏳ Unresolved: {stats.unresolved}",
            f"   📋 Total: {stats.total}",
            f"   📈 Progress: {stats.resolved}/{stats.total} ({stats.percent_resolved}%)",
            f"   {progress_bar(stats)} {stats.percent_resolved}%",
        ]
    )


def log_additional_rules(config: Config, project_root: Optional[Path] = None) -> None:
    """Log each configured rule file and whether it exists."""
    if not config.additional_rules:
        return

    root = project_root or Path.cwd()
    logger.info("Additional rules from config:")
    for rule_path in config.additional_rules:
        if (root / rule_path).exists():
            logger.info(f"   {rule_path} (found)")
        else:
            logger.warning(f"   {rule_path} (not found, flagged in the report)")
