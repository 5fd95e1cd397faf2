"""Course, lecture and exercise Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class LectureResponse(BaseModel):
    """Lecture summary embedded in posts."""

    id: int
    title: str
    course_id: int

    model_config = ConfigDict(from_attributes=True)


class ExerciseResponse(BaseModel):
    """Exercise summary embedded in posts.

    Carries the staff-only fields so that the same schema serves staff views;
    call ``filter_sensitive_information`` before handing it to anyone else.
    """

    id: int
    title: str
    problem_statement: str | None = None
    sample_solution: str | None = None
    grading_instructions: str | None = None
    course_id: int | None = None
    exercise_group_id: int | None = None

    model_config = ConfigDict(from_attributes=True)

    def filter_sensitive_information(self) -> None:
        """Drop sample solution and grading instructions in place."""
        self.sample_solution = None
        self.grading_instructions = None
