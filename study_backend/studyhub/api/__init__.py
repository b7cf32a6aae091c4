"""
API package initialization.

Exports shared schema models for external use.
"""

# Re-export commonly used schema models
from .schemas import NoteIn, NoteOut, QuizQuestion, QuizSessionOut, SubjectIn, SubjectOut  # noqa: F401
