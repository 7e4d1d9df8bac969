"""Split issue bodies into the named sections the modes consume."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

SPECIFICATION_HEADING = "### Product Specification"
PLAN_HEADING = "### Technical Plan"
GOVERNANCE_UPDATE_HEADING = "### Proposed Constitution Update"

# GitHub issue forms render unanswered optional fields with this placeholder
NO_RESPONSE = "_No response_"


@dataclass(frozen=True)
class SectionMarker:
    """A named section introduced by ``heading`` and ended by ``terminator`` (or end of text)."""
    name: str
    heading: str
    terminator: Optional[str] = None


SPECIFICATION_MARKERS = (
    SectionMarker("specification", SPECIFICATION_HEADING, terminator=PLAN_HEADING),
    SectionMarker("plan", PLAN_HEADING),
)


@dataclass
class SpecificationRequest:
    """Specification/plan pair parsed from a create-specification issue."""
    specification: str
    plan: str = ""

    @property
    def has_plan(self) -> bool:
        return bool(self.plan)


def _clean(text: str) -> str:
    text = text.strip()
    return "" if text == NO_RESPONSE else text


def extract_section(text: str, marker: SectionMarker) -> str:
    """
    Return the trimmed text following the first ``marker.heading`` line.

    Capture stops before the first later line equal to ``marker.terminator``,
    or at end of text. A missing heading yields an empty string.
    """
    lines: List[str] = text.splitlines()
    start = None
    for index, line in enumerate(lines):
        if line.strip() == marker.heading:
            start = index + 1
            break
    if start is None:
        return ""

    end = len(lines)
    if marker.terminator:
        for index in range(start, len(lines)):
            if lines[index].strip() == marker.terminator:
                end = index
                break

    return _clean("\n".join(lines[start:end]))


def extract_sections(text: str, markers: Iterable[SectionMarker]) -> Dict[str, str]:
    """Extract every marker's section, keyed by marker name."""
    return {marker.name: extract_section(text, marker) for marker in markers}


def split_specification(body: str) -> SpecificationRequest:
    """Split a create-specification issue body into specification and optional plan."""
    sections = extract_sections(body, SPECIFICATION_MARKERS)
    return SpecificationRequest(
        specification=sections["specification"],
        plan=sections["plan"],
    )


def extract_governance_update(body: str) -> str:
    """Everything after the literal constitution-update heading, trimmed.

    Uses a plain substring search so the heading may appear anywhere,
    not only on its own line.
    """
    index = body.find(GOVERNANCE_UPDATE_HEADING)
    if index == -1:
        return ""
    return _clean(body[index + len(GOVERNANCE_UPDATE_HEADING):])
