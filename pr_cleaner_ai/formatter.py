"""
Report formatters for grouped PR comments.

Transforms comment groups into a markdown report for an AI coding assistant
and a JSON export.
"""

import json
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .models import CommentGroup, CommentStatistics, Config, PRMetadata


PROGRESS_BAR_LENGTH = 20
UNRESOLVED_MARK = "⏳ **UNRESOLVED**"


def progress_bar(stats: CommentStatistics, length: int = PROGRESS_BAR_LENGTH) -> str:
    """Render resolved/total as a block progress bar."""
    filled = round(stats.resolved / stats.total * length) if stats.total else 0
    return "█" * filled + "░" * (length - filled)


def sort_file_groups(groups: Sequence[CommentGroup]) -> list[CommentGroup]:
    """Order file groups by path, then by line with file-level groups first."""
    return sorted(groups, key=lambda g: (g.file, g.line or 0))


class MarkdownFormatter:
    """Formats grouped comments into a markdown report."""

    def __init__(
        self,
        metadata: PRMetadata,
        config: Optional[Config] = None,
        project_root: Optional[Path] = None,
        now: Optional[datetime] = None,
    ):
        """
        Initialize formatter.

        Args:
            metadata: PR being reported on
            config: User configuration (additional rules, commit batching)
            project_root: Directory local file links resolve against (default: cwd)
            now: Report timestamp (default: current time)
        """
        self.metadata = metadata
        self.config = config or Config()
        self.project_root = (project_root or Path.cwd()).resolve()
        self.now = now

    def format(self, groups: Sequence[CommentGroup], stats: CommentStatistics) -> str:
        """
        Format the complete report.

        Args:
            groups: Comment groups from the grouping stage
            stats: Statistics over all fetched comments

        Returns:
            Formatted markdown report
        """
        general = [g for g in groups if g.is_general]
        file_groups = sort_file_groups([g for g in groups if not g.is_general])

        sections = [
            self._format_header(),
            self._format_statistics(stats),
            self._format_quick_start(stats),
            self._format_instructions(stats),
            self._format_general_comments(general),
            self._format_code_comments(file_groups),
            self._format_checklist(file_groups),
            self._format_resolved_note(stats),
            self._format_additional_rules(),
            self._format_commit_batch(),
        ]

        # Filter out empty sections and join with separators
        return "\n\n---\n\n".join(section for section in sections if section.strip()) + "\n"

    def _format_header(self) -> str:
        """Format report header with PR title, author and link."""
        meta = self.metadata
        lines = [f"# PR #{meta.pr_number} - Comments Status", ""]

        if meta.title:
            lines.extend([f"## 📌 {meta.title}", ""])
        if meta.author:
            lines.extend([f"**Author:** @{meta.author}", ""])

        lines.append(f"**PR Link:** [{meta.slug}#{meta.pr_number}]({meta.html_url})")
        lines.append("")
        lines.append(f"**Fetched at:** {self._format_datetime(self._now())}")

        return "\n".join(lines)

    def _format_statistics(self, stats: CommentStatistics) -> str:
        """Format statistics table and progress bar."""
        return "\n".join(
            [
                "## 📊 Comments Statistics",
                "",
                "| Status | Count |",
                "|--------|-------|",
                f"| ✅ **Resolved** | {stats.resolved} |",
                f"| ⏳ **Unresolved** | {stats.unresolved} |",
                f"| 📋 **Total** | {stats.total} |",
                "",
                f"**Progress:** {stats.resolved}/{stats.total} ({stats.percent_resolved}%)  ",
                f"`{progress_bar(stats)}` {stats.percent_resolved}%",
                "",
                "> ⚠️ Work only with **UNRESOLVED** comments (marked with ⏳). Resolved comments are "
                "counted in the statistics above but not shown in detail.",
            ]
        )

    def _format_quick_start(self, stats: CommentStatistics) -> str:
        """Format the copy-paste prompt for the assistant."""
        return "\n".join(
            [
                "## 🚀 Quick Start Prompt",
                "",
                "> **Copy and paste into your AI assistant:**",
                "",
                "```",
                f"Read this entire file and help me resolve all {stats.unresolved} unresolved comments from this PR.",
                "For each UNRESOLVED comment (marked with ⏳):",
                "1. Open the specified file",
                "2. Find the appropriate line/section",
                "3. Propose and implement a specific change",
                "4. Explain what you did and why",
                "",
                "Start with the first unresolved comment and go through all of them sequentially.",
                "```",
            ]
        )

    def _format_instructions(self, stats: CommentStatistics) -> str:
        """Format task description and rules for the assistant."""
        lines = [
            "## 🤖 AI Instructions",
            "",
            "> This file was generated automatically from Pull Request comments.",
            "> Your task is to help resolve every **UNRESOLVED** comment below.",
            "",
            "### 📋 Task",
            "",
            f"1. **Analyze all {stats.unresolved} unresolved comments** below (marked with ⏳)",
            f"2. **Resolved comments** ({stats.resolved} total) are already done and not shown",
            "3. **For each unresolved comment:**",
            "   - Open the file in the project",
            "   - Find the referenced line or section",
            "   - Propose a specific change that addresses the comment",
            "4. **After each change** tick it off in the checklist at the end of the document",
            '5. **Priority:** start with the "Code comments" section',
            "",
            "### 🎯 Response format",
            "",
            "For each comment, explain what you found in the code, what change you propose, "
            "and why it addresses the comment.",
            "",
            "### ⚠️ Rules",
            "",
            "- Read comments carefully and understand the reviewer's intent",
            "- If something is unclear, ask before making changes",
            "- Keep the existing code style and project conventions",
        ]

        if self.config.auto_fix:
            lines.append("- Apply fixes directly without asking for confirmation of each change")

        return "\n".join(lines)

    def _format_general_comments(self, groups: Sequence[CommentGroup]) -> str:
        """Format file-less comments (issue comments and general review comments)."""
        comments = [comment for group in groups for comment in group.comments]
        if not comments:
            return ""

        lines = [f"## 💬 General PR comments ({len(comments)})", ""]

        for comment in comments:
            lines.append(f"{UNRESOLVED_MARK}  ")
            lines.append(f"### 👤 {comment.author}")
            lines.append("")
            lines.append(f"**Date:** {self._format_datetime(comment.created_at)}")
            lines.append("")
            lines.append(comment.body)
            lines.append("")
            lines.append(f"[🔗 Comment link]({comment.url})")
            lines.append("")

        return "\n".join(lines).rstrip()

    def _format_code_comments(self, groups: Sequence[CommentGroup]) -> str:
        """Format comments attached to files, grouped by file then line."""
        if not groups:
            return ""

        lines = ["## 📝 Code comments", ""]
        current_file = None

        for group in groups:
            if group.file != current_file:
                current_file = group.file
                lines.append(f"### 📄 `{group.file}`")
                lines.append("")
                lines.append(
                    f"**Links:** [📂 Open locally]({self._local_path(group.file)}) | "
                    f"[🔗 View on GitHub]({self._web_url(group.file)})"
                )
                lines.append("")

            if group.line:
                lines.append(f"#### Line {group.line}")
                lines.append("")
                lines.append(
                    f"**Jump to:** [📂 Local file:{group.line}]({self._local_path(group.file)}:{group.line}) | "
                    f"[🔗 GitHub]({self._web_url(group.file, group.line)})"
                )
                lines.append("")

            for comment in group.comments:
                if comment.diff_hunk:
                    lines.append("**Code context:**")
                    lines.append("```diff")
                    lines.append(comment.diff_hunk)
                    lines.append("```")
                    lines.append("")

                lines.append(f"{UNRESOLVED_MARK}  ")
                lines.append(f"**{comment.author}** ({self._format_datetime(comment.created_at)}):")
                lines.append("")
                lines.append(comment.body)
                lines.append("")
                lines.append(f"[🔗 Link]({comment.url})")
                lines.append("")

        return "\n".join(lines).rstrip()

    def _format_checklist(self, groups: Sequence[CommentGroup]) -> str:
        """Format a task checklist of unresolved file comments."""
        lines = [
            "## ✅ Checklist (Unresolved Comments Only)",
            "",
        ]

        for group in groups:
            line_info = f" (line {group.line})" if group.line else ""
            target = f"{self._local_path(group.file)}:{group.line}" if group.line else self._local_path(group.file)
            for comment in group.comments:
                lines.append(f"- [ ] ⏳ [`{group.file}`{line_info}]({target}) - @{comment.author}")

        if len(lines) == 2:
            lines.append("_No unresolved code comments._")

        return "\n".join(lines)

    def _format_resolved_note(self, stats: CommentStatistics) -> str:
        """Explain where resolved comments went."""
        if stats.resolved == 0:
            return ""

        return "\n".join(
            [
                "## ℹ️ Resolved Comments",
                "",
                f"**{stats.resolved} comment(s) are already resolved** ✅",
                "",
                "They are not shown to keep the context focused on open work. "
                f"See them on GitHub: [PR #{self.metadata.pr_number}]({self.metadata.html_url})",
            ]
        )

    def _format_additional_rules(self) -> str:
        """List configured team rule files with an existence marker."""
        if not self.config.additional_rules:
            return ""

        lines = [
            "## 📚 Additional Team Rules",
            "",
            "When resolving PR comments, also follow these rule files:",
            "",
        ]

        for rule_path in self.config.additional_rules:
            if (self.project_root / rule_path).exists():
                lines.append(f"- `{rule_path}`")
            else:
                lines.append(f"- ⚠️ `{rule_path}` (file not found - please check the path)")

        return "\n".join(lines)

    def _format_commit_batch(self) -> str:
        """Describe the commit batching threshold, if configured."""
        threshold = self.config.commit_batch_threshold
        if not threshold:
            return ""

        return "\n".join(
            [
                "## 🔄 Commit Batch Configuration",
                "",
                f"**Commit threshold:** after fixing **{threshold}** comment(s):",
                "",
                "1. ✅ Stop and show what was fixed",
                "2. 💡 Suggest a commit message describing the changes",
                "3. ⏸️ Wait for approval before continuing",
                "4. 🔄 After the commit, summarize what is done ✅ and what remains ⏳",
                "",
                "> ⚠️ Never commit automatically. Only suggest commits and wait for explicit approval.",
            ]
        )

    def _local_path(self, file: str) -> str:
        return str(self.project_root / file)

    def _web_url(self, file: str, line: Optional[int] = None) -> str:
        meta = self.metadata
        url = f"https://{meta.hostname}/{meta.slug}/blob/HEAD/{file}"
        return f"{url}#L{line}" if line else url

    def _now(self) -> datetime:
        return self.now or datetime.now(timezone.utc)

    def _format_datetime(self, dt: Optional[datetime]) -> str:
        """Format datetime in a human-readable way."""
        if not dt:
            return "unknown"
        return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


def render_json(groups: Sequence[CommentGroup], metadata: PRMetadata, now: Optional[datetime] = None) -> str:
    """
    Render comment groups as a JSON export.

    `total_comments` counts the comments present in the groups, so it leaves
    out resolved review comments even though the statistics include them.

    Args:
        groups: Comment groups from the grouping stage
        metadata: PR being exported
        now: Export timestamp (default: current time)

    Returns:
        Pretty-printed JSON document
    """
    fetched_at = now or datetime.now(timezone.utc)
    data = {
        "pr_number": metadata.pr_number,
        "repository": metadata.slug,
        "fetched_at": fetched_at.isoformat(),
        "total_comments": sum(len(group.comments) for group in groups),
        "comments": [group.to_dict() for group in groups],
    }
    return json.dumps(data, indent=2, ensure_ascii=False)
