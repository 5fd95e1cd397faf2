"""Post and answer post Pydantic schemas."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from metis.models.post import POST_TITLE_MAX_LENGTH, CourseWideContext
from metis.schemas.course import ExerciseResponse, LectureResponse
from metis.schemas.user import UserSummary

CONTENT_MAX_LENGTH = 5000
TAG_MAX_LENGTH = 100


class PostRef(BaseModel):
    """Reference to an existing post inside a request body."""

    id: int

    # Anything else the client nests here is ignored; the stored post wins.
    model_config = ConfigDict(extra="ignore")


class AnswerPostCreate(BaseModel):
    """Schema for creating an answer post.

    ``id``, ``author`` and ``tutor_approved`` are accepted for compatibility
    with clients that send whole entities, but are decided by the server.
    """

    id: int | None = Field(None, description="Must be empty for new answer posts")
    content: str = Field(..., min_length=1, max_length=CONTENT_MAX_LENGTH)
    tutor_approved: bool | None = Field(None, description="Ignored; set by the server")
    post: PostRef

    model_config = ConfigDict(extra="ignore")


class AnswerPostUpdate(BaseModel):
    """Schema for updating an answer post."""

    id: int | None = Field(None, description="Identifier of the answer post to update")
    content: str = Field(..., min_length=1, max_length=CONTENT_MAX_LENGTH)
    tutor_approved: bool = Field(False, description="Only honoured for instructors")

    model_config = ConfigDict(extra="ignore")


class PostCreate(BaseModel):
    """Schema for creating a post in exactly one context."""

    id: int | None = Field(None, description="Must be empty for new posts")
    title: str | None = Field(None, max_length=POST_TITLE_MAX_LENGTH)
    content: str = Field(..., min_length=1, max_length=CONTENT_MAX_LENGTH)
    visible_for_students: bool = True
    tags: list[str] = Field(default_factory=list)
    lecture_id: int | None = None
    exercise_id: int | None = None
    course_id: int | None = Field(None, description="Explicit course for course-wide posts")
    course_wide_context: CourseWideContext | None = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str]) -> list[str]:
        return _clean_tags(value)


class PostUpdate(BaseModel):
    """Schema for updating the editable fields of a post."""

    id: int | None = Field(None, description="Identifier of the post to update")
    title: str | None = Field(None, max_length=POST_TITLE_MAX_LENGTH)
    content: str = Field(..., min_length=1, max_length=CONTENT_MAX_LENGTH)
    visible_for_students: bool = True
    tags: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("tags")
    @classmethod
    def _normalize_tags(cls, value: list[str]) -> list[str]:
        return _clean_tags(value)


def _clean_tags(tags: Iterable[str]) -> list[str]:
    cleaned = {tag.strip() for tag in tags if tag and tag.strip()}
    too_long = [tag for tag in cleaned if len(tag) > TAG_MAX_LENGTH]
    if too_long:
        raise ValueError(f"Tags must be at most {TAG_MAX_LENGTH} characters")
    return sorted(cleaned)


class ReactionResponse(BaseModel):
    """Emoji reaction attached to a post."""

    id: int
    emoji_id: str
    user_id: int | None = None

    model_config = ConfigDict(from_attributes=True)


class PostSummary(BaseModel):
    """Post without its answers, embedded in answer post responses."""

    id: int
    title: str | None = None
    content: str
    creation_date: datetime
    visible_for_students: bool
    votes: int
    tags: list[str] = Field(default_factory=list)
    author: UserSummary | None = None
    lecture: LectureResponse | None = None
    exercise: ExerciseResponse | None = None
    course_id: int | None = None
    course_wide_context: CourseWideContext | None = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags_as_list(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, Iterable) and not isinstance(value, str | bytes):
            return sorted(value)
        return value

    def filter_sensitive_information(self) -> None:
        """Strip staff-only exercise fields, if the post has an exercise."""
        if self.exercise is not None:
            self.exercise.filter_sensitive_information()


class AnswerPostSummary(BaseModel):
    """Answer post without its parent, embedded in post responses."""

    id: int
    content: str
    creation_date: datetime
    tutor_approved: bool
    author: UserSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class AnswerPostResponse(AnswerPostSummary):
    """Answer post returned by the API, including its parent post."""

    post: PostSummary


class PostResponse(PostSummary):
    """Post returned by the API, including answers and reactions."""

    answers: list[AnswerPostSummary] = Field(default_factory=list)
    reactions: list[ReactionResponse] = Field(default_factory=list)
