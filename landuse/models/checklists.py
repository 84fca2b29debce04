"""
Survey attestation checklists.

Each survey variant shows the reviewer a fixed list of yes/no attestations.
The lists are legal text: a reviewer must see the list for the variant the
application is in, never another one. Variants 2 and 4 share the paddy-land
list; variant 4 is the re-verification pass of variant 2.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChecklistItem:
    key: str
    question: str

    def to_dict(self) -> dict:
        return {"key": self.key, "question": self.question}


LAND_ACQUISITION_CHECKLIST: tuple[ChecklistItem, ...] = (
    ChecklistItem(
        "land_acquisition",
        "Is the land, or any part of it, affected by a land acquisition proceeding?",
    ),
)

PADDY_LAND_CHECKLIST: tuple[ChecklistItem, ...] = (
    ChecklistItem(
        "paddy_land_ecology",
        "Will the conversion adversely affect the ecology of surrounding paddy land?",
    ),
    ChecklistItem(
        "paddy_four_sided",
        "Is the plot bounded by paddy land on all four sides?",
    ),
)

FOREST_AND_PLANNING_CHECKLIST: tuple[ChecklistItem, ...] = (
    ChecklistItem(
        "forest_area",
        "Does the land fall within a notified forest area?",
    ),
    ChecklistItem(
        "master_plan_violation",
        "Does the proposed use violate the approved master plan?",
    ),
)

SURVEY_CHECKLISTS: dict[int, tuple[ChecklistItem, ...]] = {
    1: LAND_ACQUISITION_CHECKLIST,
    2: PADDY_LAND_CHECKLIST,
    3: FOREST_AND_PLANNING_CHECKLIST,
    4: PADDY_LAND_CHECKLIST,
}

SURVEY_TITLES: dict[tuple[int, bool], str] = {
    (1, False): "Land Acquisition Check",
    (1, True): "KML Survey Report",
    (2, False): "Paddy Land Assessment",
    (3, False): "Environmental and Planning Compliance",
    (4, False): "Additional Paddy Land Verification",
}

DEFAULT_SURVEY_TITLE = "Survey Report"


def checklist_for(variant: int) -> tuple[ChecklistItem, ...]:
    try:
        return SURVEY_CHECKLISTS[variant]
    except KeyError:
        raise ValueError(f"Unknown survey variant: {variant}") from None


def title_for(variant: int, kml: bool = False) -> str:
    return SURVEY_TITLES.get((variant, kml), DEFAULT_SURVEY_TITLE)
