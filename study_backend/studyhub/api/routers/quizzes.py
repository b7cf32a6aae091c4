import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status

from studyhub.api.dependencies import get_current_user_id, get_repositories, get_today
from studyhub.api.schemas import (
    AnswersIn,
    FlashcardIn,
    FlashcardOut,
    QuizResultOut,
    QuizSessionMetaOut,
    QuizSessionOut,
)
from studyhub.services.quiz_generator import generate_basic_mcq_from_notes
from studyhub.services.quiz_session import new_session
from studyhub.storage.repository import Repositories, SessionAlreadyCompletedError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Quizzes"])


@router.post(
    "/subjects/{subject_id}/quiz-sessions",
    response_model=QuizSessionOut,
    status_code=status.HTTP_201_CREATED,
    summary="Start a basic multiple-choice quiz",
    description="Generates multiple-choice questions from the subject's notes (no AI) and starts a session.",
)
async def start_basic_quiz(
    subject_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    """
    Generate a basic multiple-choice quiz from a subject's notes.

    Each usable note becomes one question: its title is the prompt, its first
    sentence the correct answer and the first sentences of other notes the
    wrong options.

    Raises:
        HTTPException 404 if the subject does not exist for this user.
        HTTPException 422 if fewer than two notes have enough content to quiz on.
    """
    await repos.subjects.get(user_id, subject_id)
    notes = await repos.notes.list(user_id, subject_id=subject_id)

    questions = generate_basic_mcq_from_notes(notes)
    if not questions:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Not enough content to quiz on: at least two notes need a first sentence of 5 characters or more",
        )

    session = await repos.quiz_sessions.save(new_session(user_id, subject_id, questions))
    logger.info(
        "Started quiz session %s with %d question(s) from %d note(s) | User: %s",
        session["id"],
        len(questions),
        len(notes),
        user_id,
    )
    return session


@router.get("/quiz-sessions", response_model=List[QuizSessionMetaOut], summary="List quiz sessions")
async def list_quiz_sessions(
    subject_id: Optional[str] = None,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    """Return session metadata, newest first, optionally for one subject."""
    sessions = await repos.quiz_sessions.list(user_id, subject_id=subject_id)
    return [
        QuizSessionMetaOut(
            id=s["id"],
            subject_id=s["subject_id"],
            type=s["type"],
            started_at=s["started_at"],
            completed_at=s.get("completed_at"),
            question_count=len(s.get("questions") or []),
            score=s.get("score"),
        )
        for s in sessions
    ]


@router.get("/quiz-sessions/{session_id}", response_model=QuizSessionOut, summary="Get quiz session by id")
async def get_quiz_session(
    session_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    return await repos.quiz_sessions.get(user_id, session_id)


@router.post(
    "/quiz-sessions/{session_id}/answers",
    response_model=QuizResultOut,
    summary="Submit answers and complete a quiz session",
)
async def submit_answers(
    session_id: str,
    answers_in: AnswersIn,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
    today: date = Depends(get_today),
):
    """
    Score the submitted answers by exact comparison with each question's correct
    answer, complete the session and record 'quiz_taken' for today.

    Raises:
        HTTPException 404 if the session does not exist for this user.
        HTTPException 409 if the session was already completed.
    """
    try:
        result = await repos.quiz_sessions.complete(user_id, session_id, answers_in.answers)
    except SessionAlreadyCompletedError:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Quiz session already completed")
    await repos.activity.register(user_id, today.isoformat(), ["quiz_taken"])

    logger.info(
        "Completed quiz session %s | Score: %d/%d | User: %s",
        session_id,
        result["score"],
        result["total"],
        user_id,
    )
    return QuizResultOut(session_id=session_id, **result)


@router.get("/subjects/{subject_id}/flashcards", response_model=List[FlashcardOut], tags=["Flashcards"])
async def list_flashcards(
    subject_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    await repos.subjects.get(user_id, subject_id)
    return await repos.flashcards.list(user_id, subject_id)


@router.post(
    "/subjects/{subject_id}/flashcards",
    response_model=FlashcardOut,
    status_code=status.HTTP_201_CREATED,
    tags=["Flashcards"],
)
async def add_flashcard(
    subject_id: str,
    card: FlashcardIn,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    await repos.subjects.get(user_id, subject_id)
    return await repos.flashcards.create(user_id, subject_id, card.front, card.back)


@router.delete(
    "/subjects/{subject_id}/flashcards/{card_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Flashcards"],
)
async def remove_flashcard(
    subject_id: str,
    card_id: str,
    user_id: str = Depends(get_current_user_id),
    repos: Repositories = Depends(get_repositories),
):
    await repos.subjects.get(user_id, subject_id)
    await repos.flashcards.delete(user_id, card_id, subject_id=subject_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
