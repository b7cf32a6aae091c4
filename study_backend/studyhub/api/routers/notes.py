import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status

from studyhub.api.dependencies import get_current_user_id, get_repositories, get_today
from studyhub.api.schemas import NoteIn, NoteOut, NoteTagIn, NoteUpdate, TagIn, TagOut, VisibilityIn
from studyhub.services.sharing import visibility_updates
from studyhub.storage.repository import Repositories

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])


@router.get("/notes", response_model=List[NoteOut], summary="List notes")
async def list_notes(
    subject_id: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    """Return the requesting user's notes, newest first, optionally for one subject."""
    return await repos.notes.list(user_id, subject_id=subject_id)


@router.post("/notes", response_model=NoteOut, status_code=status.HTTP_201_CREATED, summary="Create note")
async def create_note(
    note_in: NoteIn,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
    today: date = Depends(get_today),
):
    """
    Write a new note in one of the user's subjects.

    Writing a note counts as study activity for today ('wrote_notes').

    Raises:
        HTTPException 404 if the subject does not exist for this user.
    """
    await repos.subjects.get(user_id, note_in.subject_id)
    note = await repos.notes.create(user_id, note_in.subject_id, note_in.title, note_in.content)
    await repos.activity.register(user_id, today.isoformat(), ["wrote_notes"])
    return note


@router.get("/notes/{note_id}", response_model=NoteOut, summary="Get note by id")
async def get_note(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    return await repos.notes.get(user_id, note_id)


@router.patch("/notes/{note_id}", response_model=NoteOut, summary="Update note")
async def update_note(
    note_id: str,
    update: NoteUpdate,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    changes = update.model_dump(exclude_unset=True, exclude_none=True)
    if "subject_id" in changes:
        await repos.subjects.get(user_id, changes["subject_id"])
    return await repos.notes.update(user_id, note_id, changes)


@router.delete("/notes/{note_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete note")
async def delete_note(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    await repos.notes.delete(user_id, note_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/notes/{note_id}/visibility", response_model=NoteOut, summary="Share or unshare a note")
async def set_note_visibility(
    note_id: str,
    visibility: Optional[VisibilityIn] = None,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    """
    Make a note public or private. Without a body the visibility is toggled.

    A note gets a public id the first time it is shared; the shared note is then
    readable by anyone at /public/{public_id} until it is made private again.
    """
    note = await repos.notes.get(user_id, note_id)
    updates = visibility_updates(note, visibility.is_public if visibility else None)
    updated = await repos.notes.update(user_id, note_id, updates)
    logger.info("Note %s is now %s | User: %s", note_id, "public" if updated["is_public"] else "private", user_id)
    return updated


@router.get("/notes/{note_id}/tags", response_model=List[TagOut], summary="List a note's tags")
async def list_note_tags(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    await repos.notes.get(user_id, note_id)
    return await repos.tags.for_note(note_id)


@router.post("/notes/{note_id}/tags", response_model=List[TagOut], summary="Attach a tag to a note")
async def attach_note_tag(
    note_id: str,
    tag_in: NoteTagIn,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    """Attach an existing tag; attaching the same tag twice has no further effect."""
    await repos.notes.get(user_id, note_id)
    await repos.tags.attach(note_id, tag_in.tag_id)
    return await repos.tags.for_note(note_id)


@router.delete(
    "/notes/{note_id}/tags/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Detach a tag from a note",
)
async def detach_note_tag(
    note_id: str,
    tag_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    await repos.notes.get(user_id, note_id)
    await repos.tags.detach(note_id, tag_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/tags", response_model=List[TagOut], tags=["Tags"], summary="List tags")
async def list_tags(
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    return await repos.tags.list()


@router.post("/tags", response_model=TagOut, status_code=status.HTTP_201_CREATED, tags=["Tags"], summary="Create tag")
async def create_tag(
    tag_in: TagIn,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    """Create a tag, or return the existing tag with the same name."""
    return await repos.tags.create(tag_in.name.strip())
