"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .course import ExerciseResponse, LectureResponse
from .post import (
    AnswerPostCreate,
    AnswerPostResponse,
    AnswerPostSummary,
    AnswerPostUpdate,
    PostCreate,
    PostRef,
    PostResponse,
    PostSummary,
    PostUpdate,
    ReactionResponse,
)
from .user import UserSummary

__all__ = [
    "ExerciseResponse", "LectureResponse",
    "AnswerPostCreate", "AnswerPostResponse", "AnswerPostSummary", "AnswerPostUpdate",
    "PostCreate", "PostRef", "PostResponse", "PostSummary", "PostUpdate",
    "ReactionResponse",
    "UserSummary",
]
