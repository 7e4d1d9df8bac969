"""Locate the plan.md section that belongs to a backlog item.

Plan headings link to beads with an HTML comment marker::

    ## Phase 1: Setup <!-- bead:prodmill-42 -->

A section's body is every line after its heading up to (not including) the
next heading line, or the end of the document.
"""

import re
from collections import Counter
from typing import Dict, Iterator, List, Optional, Tuple

from ..core.errors import PlanSectionNotFound

# ATX heading: up to three spaces of indent, 1-6 hashes, then whitespace or EOL
_HEADING = re.compile(r'^ {0,3}#{1,6}(?:\s|$)')
_ANY_MARKER = re.compile(r'bead:([^\s>]+?)(?=\s|-->|$)')


def bead_marker(task_id: str) -> str:
    return f"bead:{task_id}"


def _marker_pattern(task_id: str) -> re.Pattern:
    # The id must end the token: "bead:4" must not match "bead:42" or "bead:4.1",
    # but "<!--bead:4-->" is still a match.
    return re.compile(re.escape(bead_marker(task_id)) + r'(?![\w.]|-(?!->))')


def _scan_headings(lines: List[str]) -> Iterator[Tuple[int, str]]:
    """Yield (index, line) for every heading line, code blocks included."""
    for index, line in enumerate(lines):
        if _HEADING.match(line):
            yield index, line


def find_plan_section(document: str, task_id: str) -> Optional[str]:
    """Return the trimmed section body for ``task_id``, or None if no heading carries its marker.

    Only the first matching heading is used; later duplicates are ignored.
    """
    lines = document.splitlines()
    pattern = _marker_pattern(task_id)
    headings = list(_scan_headings(lines))

    for position, (index, line) in enumerate(headings):
        if not pattern.search(line):
            continue
        end = headings[position + 1][0] if position + 1 < len(headings) else len(lines)
        return "\n".join(lines[index + 1:end]).strip()

    return None


def extract_plan_section(document: str, task_id: str) -> str:
    """
    Extract the plan section for ``task_id``.

    Raises:
        PlanSectionNotFound: If no heading contains ``bead:<task_id>``
    """
    section = find_plan_section(document, task_id)
    if section is None:
        raise PlanSectionNotFound(task_id)
    return section


def find_bead_markers(document: str) -> Dict[str, int]:
    """Count bead markers per task id across all headings of the document."""
    counts: Counter = Counter()
    for _, line in _scan_headings(document.splitlines()):
        for match in _ANY_MARKER.finditer(line):
            counts[match.group(1)] += 1
    return dict(counts)


def duplicate_markers(document: str) -> Dict[str, int]:
    """Task ids referenced by more than one heading (only the first would ever be used)."""
    return {task_id: n for task_id, n in find_bead_markers(document).items() if n > 1}
