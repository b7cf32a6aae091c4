from datetime import date, timedelta

from fastapi import APIRouter, Depends, status

from studyhub.api.dependencies import get_current_user_id, get_repositories, get_today
from studyhub.api.schemas import ActivityIn, ActivityOut, WeeklyActivityOut
from studyhub.services.study_activity import (
    current_week_range,
    heatmap_color,
    weekly_intensities,
)
from studyhub.storage.repository import Repositories

router = APIRouter(prefix="/activity", tags=["Activity"])


@router.get("/week", response_model=WeeklyActivityOut, summary="This week's study activity")
async def get_week(
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
    today: date = Depends(get_today),
):
    """Monday-to-Sunday intensity strip (0-4 per day) with heatmap colours."""
    monday, sunday = current_week_range(today)
    activities = await repos.activity.list_between(user_id, monday.isoformat(), sunday.isoformat())
    intensities = weekly_intensities(activities, today)
    return {
        "start": monday.isoformat(),
        "end": sunday.isoformat(),
        "days": [
            {
                "date": (monday + timedelta(days=offset)).isoformat(),
                "intensity": intensity,
                "color": heatmap_color(intensity),
            }
            for offset, intensity in enumerate(intensities)
        ],
    }


@router.post("", response_model=ActivityOut, status_code=status.HTTP_200_OK, summary="Register study activity")
async def register_activity(
    activity_in: ActivityIn,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
    today: date = Depends(get_today),
):
    """Set activity flags for a day (today by default). Flags already set stay set."""
    day = activity_in.date or today.isoformat()
    return await repos.activity.register(user_id, day, activity_in.flags)
