"""Predicate pipeline for the results list and CSV export."""
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence

from ttsfeedback.shared.models import Category, Observation


@dataclass(frozen=True)
class ObservationFilter:
    """Result-list filter. A None field matches everything.

    Dates are ``YYYY-MM-DD`` strings compared against the date prefix of
    the stored timestamp, both ends inclusive. The day is read in the
    timestamp's own UTC offset, not converted to the reporting timezone.
    """
    category: Optional[Category] = None
    course: Optional[str] = None
    reporter: Optional[str] = None
    tag: Optional[str] = None
    keyword: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "ObservationFilter":
        """Build from query parameters; "all" and blanks mean no filter."""
        def arg(name: str) -> Optional[str]:
            value = (args.get(name) or "").strip()
            return None if value in ("", "all") else value

        category = arg("category")
        return cls(
            category=Category(category) if category else None,
            course=arg("course"),
            reporter=arg("reporter"),
            tag=arg("tag"),
            keyword=arg("keyword"),
            start_date=arg("start_date"),
            end_date=arg("end_date"),
        )

    def matches(self, item: Observation, reporter_name: str = "") -> bool:
        if self.category is not None and item.category != self.category:
            return False
        if self.course is not None and item.course_name != self.course:
            return False
        if self.reporter is not None and reporter_name != self.reporter:
            return False
        if self.tag is not None and self.tag not in item.tags:
            return False
        if self.keyword:
            haystack = " ".join([
                item.course_name,
                item.issue_description,
                " ".join(item.tags),
                " ".join(item.feeling_tags),
                item.feeling_other or "",
            ]).lower()
            if self.keyword.strip().lower() not in haystack:
                return False
        day = item.created_at.isoformat()[:10]
        if self.start_date and day < self.start_date:
            return False
        if self.end_date and day > self.end_date:
            return False
        return True


def filter_observations(
    observations: Sequence[Observation],
    criteria: ObservationFilter,
    reporter_lookup: Mapping[str, str],
) -> List[Observation]:
    """Apply the filter, keeping the stored order."""
    return [
        item for item in observations
        if criteria.matches(item, reporter_lookup.get(item.session_id, ""))
    ]
