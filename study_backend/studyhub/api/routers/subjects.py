from typing import List

from fastapi import APIRouter, Depends, Response, status

from studyhub.api.dependencies import get_current_user_id, get_repositories
from studyhub.api.schemas import SubjectIn, SubjectOut, SubjectUpdate
from studyhub.storage.repository import Repositories

router = APIRouter(prefix="/subjects", tags=["Subjects"])


@router.get("", response_model=List[SubjectOut], summary="List subjects")
async def list_subjects(
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    """Return the requesting user's subjects ordered by name."""
    return await repos.subjects.list(user_id)


@router.post("", response_model=SubjectOut, status_code=status.HTTP_201_CREATED, summary="Create subject")
async def create_subject(
    subject_in: SubjectIn,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    return await repos.subjects.create(
        user_id,
        name=subject_in.name.strip(),
        semester=subject_in.semester,
        exam_date=subject_in.exam_date,
    )


@router.get("/{subject_id}", response_model=SubjectOut, summary="Get subject by id")
async def get_subject(
    subject_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    return await repos.subjects.get(user_id, subject_id)


@router.patch("/{subject_id}", response_model=SubjectOut, summary="Update subject")
async def update_subject(
    subject_id: str,
    update: SubjectUpdate,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    """
    Change a subject's name, semester or exam date.

    Setting exam_date here is how the planner's exam countdown is edited.
    """
    return await repos.subjects.update(user_id, subject_id, update.model_dump(exclude_unset=True))


@router.delete("/{subject_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete subject")
async def delete_subject(
    subject_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    """Delete a subject together with its notes, flashcards and planner items."""
    await repos.subjects.delete(user_id, subject_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
