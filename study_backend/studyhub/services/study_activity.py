from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

ACTIVITY_FLAGS = ("worked", "wrote_notes", "reviewed", "quiz_taken")

# Index is the intensity: 0 = very light grey ... 4 = dark blue
HEATMAP_COLORS = (
    "#e5e7eb",
    "#93c5fd",
    "#60a5fa",
    "#3b82f6",
    "#1d4ed8",
)

DateLike = Union[date, str]


def parse_date(value: DateLike) -> date:
    """Accept a date or an ISO 'YYYY-MM-DD' string (a trailing time part is ignored)."""
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


# PUBLIC_INTERFACE
def calculate_intensity(activity: Mapping[str, Any]) -> int:
    """Number of activity flags set for a day, from 0 to 4."""
    return sum(1 for flag in ACTIVITY_FLAGS if activity.get(flag))


# PUBLIC_INTERFACE
def heatmap_color(intensity: int) -> str:
    """Colour for an intensity, clamped to the 0..4 scale."""
    clamped = max(0, min(len(HEATMAP_COLORS) - 1, intensity))
    return HEATMAP_COLORS[clamped]


# PUBLIC_INTERFACE
def current_week_range(today: date) -> Tuple[date, date]:
    """Monday and Sunday of the week containing today."""
    monday = today - timedelta(days=today.weekday())
    return monday, monday + timedelta(days=6)


# PUBLIC_INTERFACE
def weekly_intensities(activities: Iterable[Mapping[str, Any]], today: date) -> List[int]:
    """
    Intensity for each day of the current week, Monday first.
    Days without a recorded activity are 0.
    """
    by_date: Dict[str, Mapping[str, Any]] = {}
    for activity in activities:
        by_date.setdefault(str(activity.get("date")), activity)

    monday, _ = current_week_range(today)
    intensities = []
    for offset in range(7):
        day = (monday + timedelta(days=offset)).isoformat()
        activity = by_date.get(day)
        intensities.append(calculate_intensity(activity) if activity else 0)
    return intensities


# PUBLIC_INTERFACE
def days_until(target: DateLike, today: date) -> int:
    """Whole days from today to target; negative once the date has passed."""
    return (parse_date(target) - today).days


def merge_flags(existing: Mapping[str, Any], flags: Iterable[str]) -> Dict[str, bool]:
    """OR the given flags into an activity's existing flags."""
    flags = set(flags)
    unknown = flags.difference(ACTIVITY_FLAGS)
    if unknown:
        raise ValueError(f"Unknown activity flag(s): {', '.join(sorted(unknown))}")
    return {flag: bool(existing.get(flag)) or flag in flags for flag in ACTIVITY_FLAGS}
