from fastapi import APIRouter, Depends

from studyhub.api.dependencies import get_repositories
from studyhub.api.schemas import PublicNoteOut
from studyhub.storage.repository import Repositories

router = APIRouter(prefix="/public", tags=["Public"])


@router.get("/{public_id}", response_model=PublicNoteOut, summary="Read a shared note")
async def get_public_note(public_id: str, repos: Repositories = Depends(get_repositories)):
    """
    Return a note shared through its public link. No user header is required.

    Raises:
        HTTPException 404 if no note has this public id or the note is no longer public.
    """
    return await repos.notes.get_public(public_id)
