from datetime import date
from typing import Annotated, Dict, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator

ActivityFlag = Literal["worked", "wrote_notes", "reviewed", "quiz_taken"]
DeadlineType = Literal["assignment", "test", "project"]
QuizType = Literal["flashcard", "multiple-choice-basic", "multiple-choice-ai", "reflection-ai"]


def _check_iso_date(value: str) -> str:
    # Stored dates are compared as strings, so always keep the YYYY-MM-DD form
    return date.fromisoformat(value).isoformat()


def _reject_null(value):
    if value is None:
        raise ValueError("may be omitted but not null")
    return value


IsoDate = Annotated[str, AfterValidator(_check_iso_date)]


# PUBLIC_INTERFACE
class SubjectIn(BaseModel):
    """Input model for creating a subject."""
    name: str = Field(..., min_length=1, description="Display name of the subject or course.")
    semester: Optional[str] = Field(default=None, description="Optional semester label, e.g. 'Fall 2026'.")
    exam_date: Optional[IsoDate] = Field(default=None, description="Optional exam date (ISO 'YYYY-MM-DD').")


# PUBLIC_INTERFACE
class SubjectUpdate(BaseModel):
    """Partial update of a subject; only provided fields change."""
    name: Optional[str] = Field(default=None, min_length=1)
    semester: Optional[str] = None
    exam_date: Optional[IsoDate] = Field(default=None, description="Exam date (ISO 'YYYY-MM-DD'); null clears it.")

    @field_validator("name")
    @classmethod
    def name_not_null(cls, value):
        return _reject_null(value)


# PUBLIC_INTERFACE
class SubjectOut(BaseModel):
    """A subject owned by the requesting user."""
    id: str
    name: str
    semester: Optional[str] = None
    exam_date: Optional[str] = None
    created_at: str


# PUBLIC_INTERFACE
class NoteIn(BaseModel):
    """Input model for writing a note in a subject."""
    subject_id: str = Field(..., description="Subject the note belongs to.")
    title: str = Field(default="", description="Note title; used as the quiz question.")
    content: str = Field(default="", description="Free-form note text.")


# PUBLIC_INTERFACE
class NoteUpdate(BaseModel):
    """Partial update of a note; only provided fields change."""
    title: Optional[str] = None
    content: Optional[str] = None
    subject_id: Optional[str] = None

    @field_validator("title", "content", "subject_id")
    @classmethod
    def fields_not_null(cls, value):
        return _reject_null(value)


# PUBLIC_INTERFACE
class NoteOut(BaseModel):
    """A note owned by the requesting user."""
    id: str
    subject_id: str
    title: str
    content: str
    created_at: str
    updated_at: Optional[str] = None
    is_public: bool = False
    public_id: Optional[str] = None


# PUBLIC_INTERFACE
class PublicNoteOut(BaseModel):
    """Read-only view of a shared note; owner details are not exposed."""
    title: str
    content: str
    created_at: str
    updated_at: Optional[str] = None


# PUBLIC_INTERFACE
class VisibilityIn(BaseModel):
    """Set a note's visibility explicitly, or omit is_public to toggle it."""
    is_public: Optional[bool] = None


# PUBLIC_INTERFACE
class TagIn(BaseModel):
    name: str = Field(..., min_length=1)


# PUBLIC_INTERFACE
class TagOut(BaseModel):
    id: str
    name: str


# PUBLIC_INTERFACE
class NoteTagIn(BaseModel):
    tag_id: str


# PUBLIC_INTERFACE
class QuizQuestion(BaseModel):
    """A single multiple-choice question generated from a note."""
    id: str = Field(..., description="Identifier of the question within its session.")
    type: QuizType = Field(default="multiple-choice-basic")
    question: str = Field(..., description="Prompt text (the source note's title).")
    options: List[str] = Field(..., description="Shuffled answer options, 2 to 4 entries.")
    correct_answer: str = Field(..., description="The option that answers the question; a member of options.")


# PUBLIC_INTERFACE
class QuizScore(BaseModel):
    score: int
    total: int
    percentage: int


# PUBLIC_INTERFACE
class QuizSessionOut(BaseModel):
    """A quiz session with its questions and, once completed, the score."""
    id: str
    subject_id: str
    type: QuizType
    questions: List[QuizQuestion]
    started_at: str
    completed_at: Optional[str] = None
    answers: Optional[Dict[str, Optional[str]]] = None
    score: Optional[QuizScore] = None


# PUBLIC_INTERFACE
class QuizSessionMetaOut(BaseModel):
    """Metadata view of a quiz session for listing endpoints."""
    id: str
    subject_id: str
    type: QuizType
    started_at: str
    completed_at: Optional[str] = None
    question_count: int
    score: Optional[QuizScore] = None


# PUBLIC_INTERFACE
class AnswersIn(BaseModel):
    """Selected option text keyed by question id. Missing questions count as wrong."""
    answers: Dict[str, Optional[str]] = Field(default_factory=dict)


# PUBLIC_INTERFACE
class QuestionResult(BaseModel):
    question_id: str
    selected: Optional[str] = None
    correct_answer: Optional[str] = None
    is_correct: bool


# PUBLIC_INTERFACE
class QuizResultOut(QuizScore):
    """Outcome of submitting answers for a session."""
    session_id: str
    results: List[QuestionResult]


# PUBLIC_INTERFACE
class FlashcardIn(BaseModel):
    front: str = Field(..., min_length=1)
    back: str = Field(..., min_length=1)


# PUBLIC_INTERFACE
class FlashcardOut(BaseModel):
    id: str
    subject_id: str
    front: str
    back: str


# PUBLIC_INTERFACE
class DeadlineIn(BaseModel):
    title: str = Field(..., min_length=1)
    due_date: IsoDate = Field(..., description="Due date (ISO 'YYYY-MM-DD').")
    type: DeadlineType = "assignment"


# PUBLIC_INTERFACE
class DeadlineOut(BaseModel):
    id: str
    subject_id: str
    title: str
    due_date: str
    type: DeadlineType


# PUBLIC_INTERFACE
class ReadingListIn(BaseModel):
    """Pasted reading list; every non-blank line becomes an item."""
    raw_text: str = Field(..., description="One reading item per line.")


# PUBLIC_INTERFACE
class ReadingItemOut(BaseModel):
    id: str
    subject_id: str
    text: str
    completed: bool = False


# PUBLIC_INTERFACE
class GoalIn(BaseModel):
    text: str = Field(..., min_length=1)


# PUBLIC_INTERFACE
class GoalOut(BaseModel):
    id: str
    subject_id: str
    text: str


# PUBLIC_INTERFACE
class PlannerOverviewOut(BaseModel):
    """Planner summary for one subject."""
    subject_id: str
    exam_date: Optional[str] = None
    days_to_exam: Optional[int] = Field(default=None, description="Negative once the exam date has passed.")
    deadlines: List[DeadlineOut]
    reading_items: List[ReadingItemOut]
    reading_completed: int
    reading_total: int
    goals: List[GoalOut]


# PUBLIC_INTERFACE
class ActivityIn(BaseModel):
    """Flags to register for a day (defaults to today)."""
    flags: List[ActivityFlag] = Field(..., min_length=1)
    date: Optional[IsoDate] = Field(default=None, description="ISO date; defaults to today.")


# PUBLIC_INTERFACE
class ActivityOut(BaseModel):
    id: str
    date: str
    worked: bool = False
    wrote_notes: bool = False
    reviewed: bool = False
    quiz_taken: bool = False


# PUBLIC_INTERFACE
class WeekDayOut(BaseModel):
    date: str
    intensity: int
    color: str


# PUBLIC_INTERFACE
class WeeklyActivityOut(BaseModel):
    """Monday-to-Sunday activity strip for the current week."""
    start: str
    end: str
    days: List[WeekDayOut]
