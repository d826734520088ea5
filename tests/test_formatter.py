"""
Tests for report formatters.
"""

import json
from datetime import datetime, timezone

import pytest

from pr_cleaner_ai.formatter import MarkdownFormatter, progress_bar, render_json, sort_file_groups
from pr_cleaner_ai.models import (
    GENERAL_FILE,
    CommentGroup,
    CommentStatistics,
    Config,
    FlatComment,
)


@pytest.fixture
def fixed_now():
    """Report timestamp."""
    return datetime(2025, 10, 15, 8, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def detailed_metadata(metadata):
    """Metadata with title and author filled in."""
    return metadata.with_details("Add dark mode support", "testuser")


@pytest.fixture
def sample_groups(sample_datetime):
    """Groups as produced by the grouping stage, in encounter order."""
    return [
        CommentGroup(
            file="src/b.py",
            line=20,
            comments=[FlatComment("reviewer1", "Rename this", sample_datetime, "https://x/r2", "@@ -18 +18 @@")],
        ),
        CommentGroup(
            file=GENERAL_FILE,
            line=None,
            comments=[FlatComment("reviewer2", "Please add tests", sample_datetime, "https://x/i1")],
        ),
        CommentGroup(
            file="src/a.py",
            line=5,
            comments=[FlatComment("reviewer1", "Typo", sample_datetime, "https://x/r1")],
        ),
        CommentGroup(
            file="src/a.py",
            line=None,
            comments=[FlatComment("reviewer3", "File-level remark", None, "https://x/r3")],
        ),
    ]


@pytest.fixture
def sample_stats():
    """Statistics with some resolved comments."""
    return CommentStatistics(total=6, resolved=2, unresolved=4)


class TestHelpers:
    """Tests for formatter helpers."""

    def test_progress_bar(self):
        """Test bar proportions."""
        assert progress_bar(CommentStatistics(total=4, resolved=2, unresolved=2), 10) == "█████░░░░░"
        assert progress_bar(CommentStatistics(total=2, resolved=2, unresolved=0), 4) == "████"

    def test_progress_bar_empty(self):
        """Test that an empty PR renders an empty bar."""
        assert progress_bar(CommentStatistics(), 5) == "░░░░░"

    def test_sort_file_groups(self, sample_groups):
        """Test ordering by file, then line with file-level groups first."""
        file_groups = [g for g in sample_groups if not g.is_general]

        ordered = sort_file_groups(file_groups)

        assert [(g.file, g.line) for g in ordered] == [("src/a.py", None), ("src/a.py", 5), ("src/b.py", 20)]


class TestMarkdownFormatter:
    """Tests for MarkdownFormatter."""

    def test_header(self, detailed_metadata, sample_groups, sample_stats, tmp_path, fixed_now):
        """Test title, author, link and timestamp."""
        report = MarkdownFormatter(detailed_metadata, project_root=tmp_path, now=fixed_now).format(
            sample_groups, sample_stats
        )

        assert report.startswith("# PR #123 - Comments Status")
        assert "## 📌 Add dark mode support" in report
        assert "**Author:** @testuser" in report
        assert "[owner/repo#123](https://github.com/owner/repo/pull/123)" in report
        assert "**Fetched at:** 2025-10-15 08:00:00 UTC" in report

    def test_header_without_details(self, metadata, sample_groups, sample_stats, tmp_path, fixed_now):
        """Test that missing title and author are left out."""
        report = MarkdownFormatter(metadata, project_root=tmp_path, now=fixed_now).format(sample_groups, sample_stats)

        assert "## 📌" not in report
        assert "**Author:**" not in report

    def test_statistics(self, metadata, sample_groups, sample_stats, tmp_path):
        """Test the statistics table and progress line."""
        report = MarkdownFormatter(metadata, project_root=tmp_path).format(sample_groups, sample_stats)

        assert "| ✅ **Resolved** | 2 |" in report
        assert "| ⏳ **Unresolved** | 4 |" in report
        assert "| 📋 **Total** | 6 |" in report
        assert "**Progress:** 2/6 (33%)" in report

    def test_general_comments_before_code_comments(self, metadata, sample_groups, sample_stats, tmp_path):
        """Test that general comments come first regardless of encounter order."""
        report = MarkdownFormatter(metadata, project_root=tmp_path).format(sample_groups, sample_stats)

        assert "## 💬 General PR comments (1)" in report
        assert report.index("## 💬 General PR comments") < report.index("## 📝 Code comments")
        assert "Please add tests" in report

    def test_code_comments_sorted(self, metadata, sample_groups, sample_stats, tmp_path):
        """Test file and line ordering of the code comment section."""
        report = MarkdownFormatter(metadata, project_root=tmp_path).format(sample_groups, sample_stats)

        assert report.index("### 📄 `src/a.py`") < report.index("### 📄 `src/b.py`")
        assert report.index("File-level remark") < report.index("#### Line 5")
        assert report.count("### 📄 `src/a.py`") == 1

    def test_code_comment_details(self, metadata, sample_groups, sample_stats, tmp_path):
        """Test diff context, links and unresolved markers."""
        report = MarkdownFormatter(metadata, project_root=tmp_path).format(sample_groups, sample_stats)

        assert "```diff\n@@ -18 +18 @@\n```" in report
        assert "https://github.com/owner/repo/blob/HEAD/src/b.py#L20" in report
        assert f"{tmp_path.resolve() / 'src/b.py'}:20" in report
        assert "**reviewer3** (unknown):" in report
        assert report.count("⏳ **UNRESOLVED**") == 4

    def test_checklist(self, metadata, sample_groups, sample_stats, tmp_path):
        """Test one checklist entry per unresolved file comment."""
        report = MarkdownFormatter(metadata, project_root=tmp_path).format(sample_groups, sample_stats)

        checklist = report.split("## ✅ Checklist (Unresolved Comments Only)")[1]
        assert checklist.count("- [ ] ⏳") == 3
        assert "`src/b.py` (line 20)" in checklist
        assert "@reviewer1" in checklist

    def test_checklist_without_code_comments(self, metadata, sample_groups, tmp_path):
        """Test the checklist when only general comments are open."""
        general_only = [g for g in sample_groups if g.is_general]
        stats = CommentStatistics(total=1, resolved=0, unresolved=1)

        report = MarkdownFormatter(metadata, project_root=tmp_path).format(general_only, stats)

        assert "_No unresolved code comments._" in report
        assert "## 📝 Code comments" not in report

    def test_resolved_note(self, metadata, sample_groups, sample_stats, tmp_path):
        """Test that resolved comments are mentioned but not listed."""
        report = MarkdownFormatter(metadata, project_root=tmp_path).format(sample_groups, sample_stats)

        assert "## ℹ️ Resolved Comments" in report
        assert "**2 comment(s) are already resolved**" in report

    def test_no_resolved_note_when_nothing_resolved(self, metadata, sample_groups, tmp_path):
        """Test that the resolved section is skipped when empty."""
        stats = CommentStatistics(total=4, resolved=0, unresolved=4)

        report = MarkdownFormatter(metadata, project_root=tmp_path).format(sample_groups, stats)

        assert "## ℹ️ Resolved Comments" not in report

    def test_additional_rules(self, metadata, sample_groups, sample_stats, tmp_path):
        """Test that missing rule files are flagged."""
        (tmp_path / "team.md").write_text("rules", encoding="utf-8")
        config = Config(additional_rules=["team.md", "missing.md"])

        report = MarkdownFormatter(metadata, config, tmp_path).format(sample_groups, sample_stats)

        assert "## 📚 Additional Team Rules" in report
        assert "- `team.md`" in report
        assert "- ⚠️ `missing.md` (file not found - please check the path)" in report

    def test_commit_batch(self, metadata, sample_groups, sample_stats, tmp_path):
        """Test the commit batching section."""
        config = Config(commit_batch_threshold=3)

        report = MarkdownFormatter(metadata, config, tmp_path).format(sample_groups, sample_stats)

        assert "## 🔄 Commit Batch Configuration" in report
        assert "after fixing **3** comment(s)" in report

    def test_optional_sections_absent_by_default(self, metadata, sample_groups, sample_stats, tmp_path):
        """Test that config-driven sections need configuration."""
        report = MarkdownFormatter(metadata, project_root=tmp_path).format(sample_groups, sample_stats)

        assert "## 📚 Additional Team Rules" not in report
        assert "## 🔄 Commit Batch Configuration" not in report
        assert "without asking for confirmation" not in report

    def test_auto_fix(self, metadata, sample_groups, sample_stats, tmp_path):
        """Test the auto-fix instruction."""
        report = MarkdownFormatter(metadata, Config(auto_fix=True), tmp_path).format(sample_groups, sample_stats)

        assert "without asking for confirmation" in report

    def test_quick_start_counts_unresolved(self, metadata, sample_groups, sample_stats, tmp_path):
        """Test that the prompt mentions the unresolved count."""
        report = MarkdownFormatter(metadata, project_root=tmp_path).format(sample_groups, sample_stats)

        assert "resolve all 4 unresolved comments" in report


class TestRenderJson:
    """Tests for the JSON export."""

    def test_document(self, metadata, sample_groups, fixed_now):
        """Test top-level fields."""
        data = json.loads(render_json(sample_groups, metadata, now=fixed_now))

        assert data["pr_number"] == 123
        assert data["repository"] == "owner/repo"
        assert data["fetched_at"] == "2025-10-15T08:00:00+00:00"
        assert data["total_comments"] == 4

    def test_comments_keep_group_order(self, metadata, sample_groups):
        """Test that groups are exported as produced."""
        data = json.loads(render_json(sample_groups, metadata))

        assert data["comments"] == [group.to_dict() for group in sample_groups]
        assert data["comments"][1] == {
            "file": "general",
            "line": None,
            "comments": [
                {
                    "author": "reviewer2",
                    "body": "Please add tests",
                    "created_at": "2025-10-14T10:30:00+00:00",
                    "url": "https://x/i1",
                    "resolved": False,
                }
            ],
        }

    def test_empty(self, metadata):
        """Test an export without groups."""
        data = json.loads(render_json([], metadata))

        assert data["total_comments"] == 0
        assert data["comments"] == []

    def test_non_ascii_kept(self, metadata, sample_datetime):
        """Test that non-ASCII text is written as-is."""
        groups = [CommentGroup(file="a.py", line=1, comments=[FlatComment("ü", "naïve ✓", sample_datetime, "u")])]

        assert "naïve ✓" in render_json(groups, metadata)
