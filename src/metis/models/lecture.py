"""SQLAlchemy model for lectures."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from metis.db.session import Base
from metis.models.course import Course


class Lecture(Base):
    """Lecture that always belongs to exactly one course."""

    __tablename__ = "lecture"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    course_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("course.id", ondelete="CASCADE"),
        nullable=False,
    )

    course: Mapped[Course] = relationship("Course")
