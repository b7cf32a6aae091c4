from datetime import date
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from studyhub.api.dependencies import get_current_user_id, get_repositories, get_today
from studyhub.api.schemas import (
    DeadlineIn,
    DeadlineOut,
    GoalIn,
    GoalOut,
    PlannerOverviewOut,
    ReadingItemOut,
    ReadingListIn,
)
from studyhub.services.planner import build_overview, parse_reading_items
from studyhub.storage.repository import Repositories

router = APIRouter(prefix="/subjects/{subject_id}", tags=["Planner"])


@router.get("/planner", response_model=PlannerOverviewOut, summary="Planner overview for a subject")
async def get_planner(
    subject_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
    today: date = Depends(get_today),
):
    """Exam countdown, deadlines by due date, reading progress and goals of a subject."""
    subject = await repos.subjects.get(user_id, subject_id)
    deadlines = await repos.deadlines.list(user_id, subject_id)
    reading_items = await repos.reading_items.list(user_id, subject_id)
    goals = await repos.goals.list(user_id, subject_id)
    return build_overview(subject, deadlines, reading_items, goals, today)


@router.post("/deadlines", response_model=DeadlineOut, status_code=status.HTTP_201_CREATED)
async def add_deadline(
    subject_id: str,
    deadline: DeadlineIn,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    await repos.subjects.get(user_id, subject_id)
    fields = deadline.model_dump()
    fields["title"] = fields["title"].strip()
    return await repos.deadlines.create(user_id, subject_id, fields)


@router.delete("/deadlines/{deadline_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_deadline(
    subject_id: str,
    deadline_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    await repos.deadlines.delete(user_id, deadline_id, subject_id=subject_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/reading-items", response_model=List[ReadingItemOut], status_code=status.HTTP_201_CREATED)
async def add_reading_items(
    subject_id: str,
    reading_list: ReadingListIn,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    """
    Add a pasted reading list to a subject, one item per non-blank line.

    Raises:
        HTTPException 400 if the text contains no non-blank line.
    """
    await repos.subjects.get(user_id, subject_id)
    lines = parse_reading_items(reading_list.raw_text)
    if not lines:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Reading list is empty")
    rows = [{"text": line, "completed": False} for line in lines]
    return await repos.reading_items.create_many(user_id, subject_id, rows)


@router.post("/reading-items/{item_id}/toggle", response_model=ReadingItemOut)
async def toggle_reading_item(
    subject_id: str,
    item_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    item = await repos.reading_items.get(user_id, item_id, subject_id=subject_id)
    return await repos.reading_items.update(user_id, item_id, {"completed": not item.get("completed")})


@router.delete("/reading-items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_reading_item(
    subject_id: str,
    item_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    await repos.reading_items.delete(user_id, item_id, subject_id=subject_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/goals", response_model=GoalOut, status_code=status.HTTP_201_CREATED)
async def add_goal(
    subject_id: str,
    goal: GoalIn,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    text = goal.text.strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Goal text cannot be empty")
    await repos.subjects.get(user_id, subject_id)
    return await repos.goals.create(user_id, subject_id, {"text": text})


@router.delete("/goals/{goal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_goal(
    subject_id: str,
    goal_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    await repos.goals.delete(user_id, goal_id, subject_id=subject_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
