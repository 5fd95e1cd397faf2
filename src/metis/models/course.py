"""SQLAlchemy models for courses and their role memberships."""

from __future__ import annotations

from sqlalchemy import Boolean, Enum, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from metis.core.roles import Role
from metis.db.session import Base


class Course(Base):
    """Course owning the role membership data used for authorization."""

    __tablename__ = "course"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    short_name: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    # Discussions can be switched off per course.
    posts_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    members: Mapped[list[CourseMember]] = relationship(
        "CourseMember",
        back_populates="course",
        cascade="all, delete-orphan",
    )


class CourseMember(Base):
    """Join table mapping users into courses with a role."""

    __tablename__ = "course_member"

    course_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("course.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role: Mapped[Role] = mapped_column(
        Enum(Role, native_enum=False, length=32),
        nullable=False,
        default=Role.STUDENT,
    )

    course: Mapped[Course] = relationship("Course", back_populates="members")
