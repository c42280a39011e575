"""
Item Classifier — splits a takeoff description into a group name and a
location label.

Descriptions follow the "[Element] - [Material/Spec] - [Axis/Grid]"
convention. The trailing segment is the location; everything before it is
the group name. A description without the delimiter falls back to a
single catch-all location.
"""
import logging
from dataclasses import dataclass

from takeoff.config import DEFAULT_LOCATION, DESCRIPTION_DELIMITER

logger = logging.getLogger("takeoff-classifier")

PARSED = "PARSED"
MALFORMED_DESCRIPTION = "MALFORMED_DESCRIPTION"


@dataclass(frozen=True)
class ClassifiedDescription:
    group_name: str
    location: str
    status: str = PARSED      # PARSED | MALFORMED_DESCRIPTION

    @property
    def fallback_applied(self) -> bool:
        return self.status == MALFORMED_DESCRIPTION


def classify_description(description: str) -> ClassifiedDescription:
    """
    Parse a description into (group name, location).

    "Grade Beam (GB1) - Concrete C30 - Grid A" -> ("Grade Beam (GB1) - Concrete C30", "Grid A")
    "Skirting - Room 101"                      -> ("Skirting", "Room 101")
    "Site clearance"                           -> ("Site clearance", "General")
    """
    parts = (description or "").split(DESCRIPTION_DELIMITER)

    if len(parts) >= 3:
        return ClassifiedDescription(
            group_name=DESCRIPTION_DELIMITER.join(parts[:-1]),
            location=parts[-1],
        )
    if len(parts) == 2:
        return ClassifiedDescription(group_name=parts[0], location=parts[1])

    logger.debug(f"No location segment in description {description!r}; using {DEFAULT_LOCATION!r}")
    return ClassifiedDescription(
        group_name=description or "",
        location=DEFAULT_LOCATION,
        status=MALFORMED_DESCRIPTION,
    )
