import logging
import random
import re
import uuid
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence

logger = logging.getLogger(__name__)

QUESTION_TYPE_MCQ_BASIC = "multiple-choice-basic"

# Tunable thresholds. Kept at their historical values so generated quizzes stay comparable.
MIN_KEY_FACT_LENGTH = 5
MAX_DISTRACTORS = 3
FALLBACK_LINE_LENGTH = 100

# First run of non-terminator characters followed by a terminator. Abbreviations,
# decimals and quotations are not understood: "Dr. Who" ends after "Dr.".
_FIRST_SENTENCE_REGEX = re.compile(r"^[^.!?]+[.!?]")


def _note_field(note: Any, name: str) -> str:
    """Read a text field from a mapping or attribute-style note, treating missing values as empty."""
    if isinstance(note, Mapping):
        value = note.get(name)
    else:
        value = getattr(note, name, None)
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


# PUBLIC_INTERFACE
def extract_key_fact(text: Optional[str]) -> str:
    """
    Extract the "key fact" of a note's content.

    The key fact is the first sentence of the trimmed text (everything up to and
    including the first '.', '!' or '?'). When the text has no terminator, the
    first line truncated to FALLBACK_LINE_LENGTH characters is used instead.

    Args:
        text: Free-form note content. None and empty strings yield "".

    Returns:
        str: The trimmed key fact, possibly empty.
    """
    if not text:
        return ""
    cleaned = text.strip()

    match = _FIRST_SENTENCE_REGEX.match(cleaned)
    if match:
        return match.group(0).strip()

    first_line = cleaned.split("\n")[0]
    return first_line[:FALLBACK_LINE_LENGTH].strip()


def _is_usable(key_fact: str) -> bool:
    return len(key_fact) >= MIN_KEY_FACT_LENGTH


def _collect_distractors(key_facts: List[str], skip_index: int) -> List[str]:
    """Collect up to MAX_DISTRACTORS usable key facts from every other note, in note order."""
    distractors: List[str] = []
    for j, candidate in enumerate(key_facts):
        if len(distractors) >= MAX_DISTRACTORS:
            break
        if j == skip_index:
            continue
        if _is_usable(candidate):
            distractors.append(candidate)
    return distractors


# PUBLIC_INTERFACE
def generate_basic_mcq_from_notes(
    notes: Sequence[Any],
    rng: Optional[random.Random] = None,
) -> List[Dict[str, Any]]:
    """
    Generate basic multiple-choice questions from a subject's notes without any AI call.

    Rules:
        - The note title is the question.
        - The note's key fact (see extract_key_fact) is the correct answer.
        - Key facts of the other notes, in note order, are the wrong options (at most 3).
        - A note is skipped when its key fact is shorter than 5 characters or no
          other note offers a usable key fact.
        - Options are shuffled; this is the only non-deterministic step.

    Identical key facts across notes are not de-duplicated, so an option list may
    contain the same text twice.

    Args:
        notes: Ordered notes, each a mapping or object exposing 'title' and 'content'.
        rng: Optional random source for the shuffle. Defaults to a fresh random.Random.

    Returns:
        list[dict]: Questions in note order, each
            {"id", "type", "question", "options", "correct_answer"}.
            Empty when there is not enough content to quiz on.
    """
    if not notes:
        return []

    rng = rng or random.Random()
    key_facts = [extract_key_fact(_note_field(note, "content")) for note in notes]

    questions: List[Dict[str, Any]] = []
    for i, note in enumerate(notes):
        correct = key_facts[i]
        if not _is_usable(correct):
            continue

        distractors = _collect_distractors(key_facts, i)
        if not distractors:
            continue

        options = [correct] + distractors
        rng.shuffle(options)

        questions.append(
            {
                "id": uuid.uuid4().hex,
                "type": QUESTION_TYPE_MCQ_BASIC,
                "question": _note_field(note, "title"),
                "options": options,
                "correct_answer": correct,
            }
        )

    logger.debug("Generated %d basic MCQ question(s) from %d note(s)", len(questions), len(notes))
    return questions
