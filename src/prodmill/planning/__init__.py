"""Plan document, issue body and workspace handling."""

from .issue_sections import (
    GOVERNANCE_UPDATE_HEADING,
    PLAN_HEADING,
    SPECIFICATION_HEADING,
    SectionMarker,
    SpecificationRequest,
    extract_governance_update,
    extract_section,
    extract_sections,
    split_specification,
)
from .plan_sections import (
    bead_marker,
    duplicate_markers,
    extract_plan_section,
    find_bead_markers,
    find_plan_section,
)
from .workspace import SpecKitWorkspace

__all__ = [
    "GOVERNANCE_UPDATE_HEADING",
    "PLAN_HEADING",
    "SPECIFICATION_HEADING",
    "SectionMarker",
    "SpecificationRequest",
    "extract_governance_update",
    "extract_section",
    "extract_sections",
    "split_specification",
    "bead_marker",
    "duplicate_markers",
    "extract_plan_section",
    "find_bead_markers",
    "find_plan_section",
    "SpecKitWorkspace",
]
