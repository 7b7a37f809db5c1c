"""Tests for the display diffs."""

from __future__ import annotations

from a11yfix.fix.diff import NO_NEWLINE_MARKER, create_patch, generate_colored_diff, generate_patch_diff


class TestGenerateColoredDiff:
    def test_insertion_is_green(self):
        result = generate_colored_diff("<img>", "<img alt>")

        assert "[green] alt[/green]" in result
        assert "[red]" not in result

    def test_deletion_is_red(self):
        result = generate_colored_diff('<p id="x">a</p>', "<p>a</p>")
        assert '[red] id="x"[/red]' in result

    def test_unchanged_text_is_escaped(self):
        result = generate_colored_diff("[b]<p>a</p>", "[b]<p>b</p>")
        assert result.startswith("\\[b]")

    def test_identical_text_has_no_markup(self):
        assert generate_colored_diff("<p>a</p>", "<p>a</p>") == "<p>a</p>"


class TestCreatePatch:
    def test_has_index_block_and_headers(self):
        patch = create_patch("page.html", "<p>a</p>\n", "<p>b</p>\n")
        lines = patch.splitlines()

        assert lines[0] == "Index: page.html"
        assert lines[1] == "=" * 67
        assert lines[2] == "--- page.html"
        assert lines[3] == "+++ page.html"
        assert lines[4].startswith("@@")

    def test_marks_missing_final_newline(self):
        patch = create_patch("page.html", "<p>a</p>", "<p>b</p>")
        assert patch.count(NO_NEWLINE_MARKER) == 2


class TestGeneratePatchDiff:
    def test_header_block_stripped(self):
        diff = generate_patch_diff("page.html", "<p>a</p>\n", "<p>b</p>\n", colors=False)

        assert diff.startswith("--- page.html")
        assert "Index:" not in diff

    def test_header_block_kept(self):
        diff = generate_patch_diff(
            "page.html", "<p>a</p>\n", "<p>b</p>\n", colors=False, strip_header=False
        )
        assert diff.startswith("Index: page.html")

    def test_colored_lines(self):
        diff = generate_patch_diff("page.html", "<p>a</p>", "<p>b</p>")
        lines = diff.split("\n")

        assert lines[0] == "--- page.html"
        assert lines[1] == "+++ page.html"
        assert "[cyan]@@ -1 +1 @@[/cyan]" in lines
        assert "[red]-<p>a</p>[/red]" in lines
        assert "[green]+<p>b</p>[/green]" in lines
        assert any(line.startswith("[dim]") for line in lines)
