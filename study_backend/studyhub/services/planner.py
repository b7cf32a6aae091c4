import re
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence

from studyhub.services.study_activity import days_until

DEADLINE_TYPES = ("assignment", "test", "project")

_LINE_SPLIT_REGEX = re.compile(r"\r?\n")


# PUBLIC_INTERFACE
def parse_reading_items(raw_text: Optional[str]) -> List[str]:
    """Split pasted reading-list text into trimmed, non-empty lines."""
    if not raw_text:
        return []
    lines = (line.strip() for line in _LINE_SPLIT_REGEX.split(raw_text))
    return [line for line in lines if line]


# PUBLIC_INTERFACE
def build_overview(
    subject: Mapping[str, Any],
    deadlines: Sequence[Mapping[str, Any]],
    reading_items: Sequence[Mapping[str, Any]],
    goals: Sequence[Mapping[str, Any]],
    today: date,
) -> Dict[str, Any]:
    """
    Summarize a subject's planner: exam countdown, deadlines in due-date order,
    reading progress and goals.
    """
    exam_date = subject.get("exam_date") or None
    return {
        "subject_id": subject["id"],
        "exam_date": exam_date,
        "days_to_exam": days_until(exam_date, today) if exam_date else None,
        "deadlines": sorted(deadlines, key=lambda d: (d.get("due_date") or "", d.get("title") or "")),
        "reading_items": list(reading_items),
        "reading_completed": sum(1 for item in reading_items if item.get("completed")),
        "reading_total": len(reading_items),
        "goals": list(goals),
    }
