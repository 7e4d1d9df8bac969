"""Tests for plan.md section extraction by bead marker."""

import pytest

from prodmill.core.errors import PlanSectionNotFound
from prodmill.planning.plan_sections import (
    bead_marker,
    duplicate_markers,
    extract_plan_section,
    find_bead_markers,
    find_plan_section,
)

TWO_PHASES = "## Setup <!-- bead:42 -->\nDo X.\n## Deploy <!-- bead:43 -->\nDo Y.\n"


class TestExtractPlanSection:
    def test_section_stops_at_next_heading(self):
        assert extract_plan_section(TWO_PHASES, "42") == "Do X."

    def test_last_section_runs_to_end_of_document(self):
        assert extract_plan_section(TWO_PHASES, "43") == "Do Y."

    def test_missing_trailing_newline(self):
        doc = "## Deploy <!-- bead:43 -->\nDo Y."
        assert extract_plan_section(doc, "43") == "Do Y."

    def test_heading_at_end_of_document_has_empty_body(self):
        doc = "## Setup <!-- bead:1 -->\nStuff\n## Later <!-- bead:2 -->"
        assert extract_plan_section(doc, "2") == ""

    def test_surrounding_blank_lines_are_trimmed(self):
        doc = "## A <!-- bead:a -->\n\n\n  Body line\n\nsecond\n\n\n## B\n"
        assert extract_plan_section(doc, "a") == "Body line\n\nsecond"

    def test_any_heading_level_ends_section(self):
        doc = "## A <!-- bead:a -->\nintro\n### Detail\nnested\n"
        assert extract_plan_section(doc, "a") == "intro"

    def test_marker_missing_raises(self):
        with pytest.raises(PlanSectionNotFound) as exc_info:
            extract_plan_section(TWO_PHASES, "99")

        assert exc_info.value.task_id == "99"
        assert "bead:99" in str(exc_info.value)

    def test_marker_in_body_text_is_not_a_heading(self):
        doc = "## Setup\nSee bead:7 for details\n"
        assert find_plan_section(doc, "7") is None

    def test_id_prefix_does_not_match_longer_id(self):
        doc = "## Setup <!-- bead:42 -->\nDo X.\n"
        assert find_plan_section(doc, "4") is None

    def test_id_does_not_match_dotted_child(self):
        doc = "## Child <!-- bead:pm-4.1 -->\nchild\n## Parent <!-- bead:pm-4 -->\nparent\n"
        assert extract_plan_section(doc, "pm-4") == "parent"
        assert extract_plan_section(doc, "pm-4.1") == "child"

    def test_compact_marker_without_spaces(self):
        doc = "## Setup <!--bead:5-->\nDo it.\n"
        assert extract_plan_section(doc, "5") == "Do it."

    def test_first_matching_heading_wins(self):
        doc = "## First <!-- bead:1 -->\none\n## Again <!-- bead:1 -->\ntwo\n"
        assert extract_plan_section(doc, "1") == "one"

    def test_heading_line_inside_code_block_still_ends_section(self):
        doc = (
            "## Build <!-- bead:b -->\n"
            "Run:\n"
            "```bash\n"
            "# install deps\n"
            "make\n"
            "```\n"
        )
        assert extract_plan_section(doc, "b") == "Run:\n```bash"

    def test_unclosed_code_block_does_not_hide_later_headings(self):
        doc = "## A <!-- bead:1 -->\n```\nsnippet\n## B <!-- bead:2 -->\nDo Y.\n"
        assert extract_plan_section(doc, "2") == "Do Y."
        assert extract_plan_section(doc, "1") == "```\nsnippet"

    def test_mixed_fence_characters_do_not_swallow_next_phase(self):
        doc = "## A <!-- bead:1 -->\n```\n~~~\n```\nafter\n## B <!-- bead:2 -->\nDo Y.\n"
        assert extract_plan_section(doc, "1") == "```\n~~~\n```\nafter"

    def test_marked_heading_between_fence_lines_is_found(self):
        doc = "```\n## C <!-- bead:3 -->\nDo Z.\n```\n"
        assert extract_plan_section(doc, "3") == "Do Z.\n```"

    def test_markers_between_fence_lines_are_counted(self):
        doc = "## A <!-- bead:1 -->\n```\n## Copy <!-- bead:1 -->\n```\n"
        assert duplicate_markers(doc) == {"1": 2}

    def test_hash_without_space_is_not_a_heading(self):
        doc = "## A <!-- bead:a -->\n#hashtag stays\n## B\n"
        assert extract_plan_section(doc, "a") == "#hashtag stays"

    def test_regex_characters_in_id_are_literal(self):
        doc = "## Odd <!-- bead:a+b -->\nplus\n## Other <!-- bead:aab -->\nother\n"
        assert extract_plan_section(doc, "a+b") == "plus"


class TestBeadMarkers:
    def test_bead_marker(self):
        assert bead_marker("pm-1") == "bead:pm-1"

    def test_find_bead_markers_counts_heading_markers(self):
        assert find_bead_markers(TWO_PHASES) == {"42": 1, "43": 1}

    def test_compact_marker_is_counted(self):
        assert find_bead_markers("## A <!--bead:9-->\n") == {"9": 1}

    def test_duplicate_markers(self):
        doc = "## A <!-- bead:1 -->\n## B <!-- bead:1 -->\n## C <!-- bead:2 -->\n"
        assert duplicate_markers(doc) == {"1": 2}

    def test_no_duplicates(self):
        assert duplicate_markers(TWO_PHASES) == {}
