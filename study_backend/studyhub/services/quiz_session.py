import math
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from studyhub.services.quiz_generator import QUESTION_TYPE_MCQ_BASIC

QUIZ_TYPES = (
    "flashcard",
    QUESTION_TYPE_MCQ_BASIC,
    "multiple-choice-ai",
    "reflection-ai",
)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# PUBLIC_INTERFACE
def new_session(
    user_id: str,
    subject_id: str,
    questions: List[Dict[str, Any]],
    quiz_type: str = QUESTION_TYPE_MCQ_BASIC,
) -> Dict[str, Any]:
    """Create an unsaved quiz session record holding the given questions."""
    if quiz_type not in QUIZ_TYPES:
        raise ValueError(f"Unknown quiz type '{quiz_type}'")
    return {
        "id": uuid.uuid4().hex,
        "user_id": user_id,
        "subject_id": subject_id,
        "type": quiz_type,
        "questions": questions,
        "started_at": _utc_now_iso(),
        "completed_at": None,
        "answers": None,
        "score": None,
    }


def _percentage(score: int, total: int) -> int:
    if total <= 0:
        return 0
    # Half-up rounding: 12.5 -> 13
    return int(math.floor(score * 100 / total + 0.5))


# PUBLIC_INTERFACE
def score_answers(questions: List[Dict[str, Any]], answers: Mapping[str, Optional[str]]) -> Dict[str, Any]:
    """
    Score submitted answers against a session's questions.

    An answer is correct only when it is exactly equal to the question's
    correct_answer. Questions without an answer count as wrong.

    Args:
        questions: The session's questions, each with 'id' and 'correct_answer'.
        answers: Selected option text keyed by question id.

    Returns:
        dict: {"score", "total", "percentage", "results": [per-question outcome]}.
    """
    results = []
    score = 0
    for question in questions:
        selected = answers.get(question["id"])
        is_correct = selected is not None and selected == question.get("correct_answer")
        if is_correct:
            score += 1
        results.append(
            {
                "question_id": question["id"],
                "selected": selected,
                "correct_answer": question.get("correct_answer"),
                "is_correct": is_correct,
            }
        )

    total = len(questions)
    return {
        "score": score,
        "total": total,
        "percentage": _percentage(score, total),
        "results": results,
    }


# PUBLIC_INTERFACE
def completion_updates(answers: Mapping[str, Optional[str]], result: Dict[str, Any]) -> Dict[str, Any]:
    """Fields to persist on a session once its answers have been scored."""
    return {
        "completed_at": _utc_now_iso(),
        "answers": dict(answers),
        "score": {k: result[k] for k in ("score", "total", "percentage")},
    }
