"""SQLAlchemy models for exercises and the exam structure around them."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from metis.db.session import Base
from metis.models.course import Course


class Exam(Base):
    """Exam held within a course."""

    __tablename__ = "exam"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    course_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
    )

    course: Mapped[Course] = relationship("Course")


class ExerciseGroup(Base):
    """Group of interchangeable exam exercises."""

    __tablename__ = "exercise_group"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    exam_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("exam.id", ondelete="CASCADE"),
        nullable=False,
    )

    exam: Mapped[Exam] = relationship("Exam")


class Exercise(Base):
    """Exercise attached either directly to a course or to an exam exercise group."""

    __tablename__ = "exercise"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    problem_statement: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Staff-only material; never shown to students.
    sample_solution: Mapped[str | None] = mapped_column(Text, nullable=True)
    grading_instructions: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Course exercises reference the course; exam exercises reference a group.
    course_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("course.id", ondelete="CASCADE"),
        nullable=True,
    )
    exercise_group_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("exercise_group.id", ondelete="CASCADE"),
        nullable=True,
    )

    course: Mapped[Course | None] = relationship("Course")
    exercise_group: Mapped[ExerciseGroup | None] = relationship("ExerciseGroup")

    @property
    def is_exam_exercise(self) -> bool:
        """Return True when the exercise is part of an exam."""
        return self.exercise_group is not None

    def course_via_exercise_group_or_course_member(self) -> Course | None:
        """Return the owning course, looking through the exam for grouped exercises."""
        if self.is_exam_exercise:
            return self.exercise_group.exam.course
        return self.course
