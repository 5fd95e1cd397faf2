"""Data access helpers for courses, lectures and exercises."""
from __future__ import annotations

from sqlalchemy.orm import Session

from metis.models import Course, Exercise, Lecture
from metis.services.errors import NotFoundError

__all__ = ["CourseRepository", "ExerciseRepository", "LectureRepository"]


class CourseRepository:
    """Thin wrapper around database access for courses."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, course_id: int) -> Course | None:
        """Return a course by identifier."""
        return self.session.get(Course, course_id)

    def find_by_id_or_fail(self, course_id: int) -> Course:
        """Return a course or raise NotFoundError."""
        course = self.get_by_id(course_id)
        if course is None:
            raise NotFoundError(f"Course with id {course_id} not found", entity="course")
        return course


class LectureRepository:
    """Thin wrapper around database access for lectures."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_id_or_fail(self, lecture_id: int) -> Lecture:
        """Return a lecture or raise NotFoundError."""
        lecture = self.session.get(Lecture, lecture_id)
        if lecture is None:
            raise NotFoundError(f"Lecture with id {lecture_id} not found", entity="lecture")
        return lecture


class ExerciseRepository:
    """Thin wrapper around database access for exercises."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_id_or_fail(self, exercise_id: int) -> Exercise:
        """Return an exercise or raise NotFoundError."""
        exercise = self.session.get(Exercise, exercise_id)
        if exercise is None:
            raise NotFoundError(f"Exercise with id {exercise_id} not found", entity="exercise")
        return exercise
