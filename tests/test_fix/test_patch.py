"""Tests for parsing and applying diff-formatted fix responses."""

from __future__ import annotations

import pytest

from a11yfix.core.errors import PatchApplyError, PatchError, PatchParseError
from a11yfix.fix.diff import create_patch
from a11yfix.fix.patch import apply_patch, apply_patch_diff, parse_patch

ORIGINAL = '<main>\n<img src="a.png">\n</main>\n'
FIXED = '<main>\n<img src="a.png" alt="Logo">\n</main>\n'
PATCH = (
    "--- index.html\n"
    "+++ index.html\n"
    "@@ -1,3 +1,3 @@\n"
    " <main>\n"
    '-<img src="a.png">\n'
    '+<img src="a.png" alt="Logo">\n'
    " </main>\n"
)

LONG_DOC = "".join(f"<li>{i}</li>\n" for i in range(40))


class TestApplyPatchDiff:
    def test_full_rewrite_returned_verbatim(self):
        assert apply_patch_diff("<p>old</p>", "<p>new</p>", False) == "<p>new</p>"

    def test_full_rewrite_ignores_patch_like_text(self):
        assert apply_patch_diff("anything", PATCH, False) == PATCH

    def test_applies_patch(self):
        assert apply_patch_diff(ORIGINAL, PATCH, True) == FIXED

    def test_strips_preamble_before_patch(self):
        response = "Sure! Here is the patch you asked for:\n\n" + PATCH
        assert apply_patch_diff(ORIGINAL, response, True) == FIXED

    def test_patch_found_at_shifted_position(self):
        original = "<!doctype html>\n<html>\n" + ORIGINAL
        assert apply_patch_diff(original, PATCH, True) == "<!doctype html>\n<html>\n" + FIXED

    def test_blank_context_line_without_space(self):
        original = "<ul>\n\n<li>a</li>\n</ul>\n"
        patch = (
            "--- page.html\n"
            "+++ page.html\n"
            "@@ -1,4 +1,4 @@\n"
            " <ul>\n"
            "\n"
            "-<li>a</li>\n"
            "+<li>b</li>\n"
            " </ul>\n"
        )
        assert apply_patch_diff(original, patch, True) == "<ul>\n\n<li>b</li>\n</ul>\n"

    def test_prose_only_is_parse_error(self):
        with pytest.raises(PatchParseError):
            apply_patch_diff(ORIGINAL, "I could not find any issue to fix.", True)

    def test_headers_without_hunks_leave_text_unchanged(self):
        assert apply_patch_diff(ORIGINAL, "--- a.html\n+++ a.html\nnothing here\n", True) == ORIGINAL

    def test_header_only_patch_after_prose(self):
        """A reply saying the chunk is fine, followed by an empty patch."""
        response = "No accessibility issues in this part.\n--- index.html\n+++ index.html\n"
        assert apply_patch_diff("<li>fine</li>\n", response, True) == "<li>fine</li>\n"

    def test_dashes_without_file_header_is_parse_error(self):
        with pytest.raises(PatchParseError):
            apply_patch_diff(ORIGINAL, "---\nNothing to fix here.\n", True)

    def test_bad_hunk_header_is_parse_error(self):
        with pytest.raises(PatchParseError):
            apply_patch_diff(ORIGINAL, "--- a.html\n+++ a.html\n@@ lines 1-3 @@\n-x\n", True)

    def test_context_mismatch_is_apply_error(self):
        with pytest.raises(PatchApplyError, match="Could not apply"):
            apply_patch_diff("<main>\n<p>other</p>\n</main>\n", PATCH, True)

    def test_apply_and_parse_errors_are_distinct(self):
        with pytest.raises(PatchError) as exc_info:
            apply_patch_diff("<p>unrelated</p>\n", PATCH, True)

        assert isinstance(exc_info.value, PatchApplyError)
        assert not isinstance(exc_info.value, PatchParseError)


class TestRoundTrip:
    @pytest.mark.parametrize(
        "old, new",
        [
            ("<p>a</p>\n<p>b</p>\n", "<p>a</p>\n<p>c</p>\n"),
            ("<p>a</p>", "<p>b</p>"),
            ("<div>\n<img src=x>\n</div>", '<div>\n<img src=x alt="">\n</div>\n'),
            ("<p>a</p>\n", "<p>a</p>"),
            ("", "<p>new</p>\n"),
            ("<p>gone</p>\n", ""),
            (
                LONG_DOC,
                LONG_DOC.replace("<li>3</li>", '<li lang="en">3</li>').replace(
                    "<li>35</li>\n", "<li>35</li>\n<li>extra</li>\n"
                ),
            ),
        ],
    )
    def test_created_patch_applies(self, old: str, new: str):
        patch = create_patch("page.html", old, new)
        assert apply_patch_diff(old, patch, True) == new

    def test_multiple_hunks_parsed(self):
        new = LONG_DOC.replace("<li>2</li>", "<li>two</li>").replace("<li>37</li>", "<li>37!</li>")
        patches = parse_patch(create_patch("page.html", LONG_DOC, new))
        with_hunks = [patch for patch in patches if patch.hunks]

        assert len(with_hunks) == 1
        assert len(with_hunks[0].hunks) == 2
        assert with_hunks[0].index == "page.html"


class TestParsePatch:
    def test_reads_file_names_and_counts(self):
        patch = parse_patch(PATCH)[0]

        assert patch.old_file_name == "index.html"
        assert patch.new_file_name == "index.html"
        hunk = patch.hunks[0]
        assert (hunk.old_start, hunk.old_lines, hunk.new_start, hunk.new_lines) == (1, 3, 1, 3)
        assert len(hunk.lines) == 4

    def test_omitted_counts_default_to_one(self):
        hunk = parse_patch("--- a\n+++ a\n@@ -2 +2 @@\n-x\n+y\n")[0].hunks[0]

        assert hunk.old_lines == 1
        assert hunk.new_lines == 1

    def test_several_files_in_one_patch(self):
        text = PATCH + PATCH.replace("index.html", "other.html")
        patches = [patch for patch in parse_patch(text) if patch.hunks]

        assert [patch.old_file_name for patch in patches] == ["index.html", "other.html"]

    def test_apply_returns_none_on_mismatch(self):
        assert apply_patch("<p>x</p>\n", parse_patch(PATCH)[0]) is None
