"""
Study Hub backend package.

Subjects, notes, rule-based quizzes, study activity tracking and exam planning
served over a small FastAPI application.
"""

__version__ = "0.1.0"
