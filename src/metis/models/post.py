"""SQLAlchemy models for discussion posts, replies and reactions."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.orm import Mapped, mapped_column, relationship

from metis.db.session import Base
from metis.db.time import utcnow
from metis.models.course import Course
from metis.models.exercise import Exercise
from metis.models.lecture import Lecture
from metis.models.user import User

POST_TITLE_MAX_LENGTH = 200


class CourseWideContext(str, enum.Enum):
    """Topic of a post that is not tied to a lecture or exercise."""

    TECH_SUPPORT = "TECH_SUPPORT"
    ORGANIZATION = "ORGANIZATION"
    RANDOM = "RANDOM"


class Post(Base):
    """Root message of a discussion thread.

    A post is attached to at most one of lecture, exercise or course. The
    owning course is derived by ``metis.services.course_context``; the
    ``course`` relationship here is only the explicit reference.
    """

    __tablename__ = "post"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    creation_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    title: Mapped[str | None] = mapped_column(String(POST_TITLE_MAX_LENGTH), nullable=True)
    visible_for_students: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Legacy counter, superseded by reactions.
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    author_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="SET NULL"),
        nullable=True,
    )
    exercise_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("exercise.id", ondelete="CASCADE"),
        nullable=True,
    )
    lecture_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("lecture.id", ondelete="CASCADE"),
        nullable=True,
    )
    course_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("course.id", ondelete="CASCADE"),
        nullable=True,
    )
    course_wide_context: Mapped[CourseWideContext | None] = mapped_column(
        Enum(CourseWideContext, native_enum=False, length=32),
        nullable=True,
    )

    author: Mapped[User | None] = relationship("User")
    exercise: Mapped[Exercise | None] = relationship("Exercise")
    lecture: Mapped[Lecture | None] = relationship("Lecture")
    course: Mapped[Course | None] = relationship("Course")

    reactions: Mapped[list[Reaction]] = relationship(
        "Reaction",
        back_populates="post",
        cascade="all, delete-orphan",
    )
    answers: Mapped[list[AnswerPost]] = relationship(
        "AnswerPost",
        back_populates="post",
        cascade="all, delete-orphan",
        order_by="AnswerPost.id",
    )
    tag_rows: Mapped[list[PostTag]] = relationship(
        "PostTag",
        cascade="all, delete-orphan",
        order_by="PostTag.tag",
    )
    tags: AssociationProxy[list[str]] = association_proxy(
        "tag_rows",
        "tag",
        creator=lambda tag: PostTag(tag=tag),
    )


class PostTag(Base):
    """Free-form tag attached to a post."""

    __tablename__ = "post_tag"

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag: Mapped[str] = mapped_column(String(100), primary_key=True)


class Reaction(Base):
    """Emoji reaction of a user to a post."""

    __tablename__ = "reaction"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    emoji_id: Mapped[str] = mapped_column(Text, nullable=False)
    creation_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="SET NULL"),
        nullable=True,
    )
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
    )

    post: Mapped[Post] = relationship("Post", back_populates="reactions")


class AnswerPost(Base):
    """Reply attached to exactly one post."""

    __tablename__ = "answer_post"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    creation_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    # Set by instructors to mark the answer as correct.
    tutor_approved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    author_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="SET NULL"),
        nullable=True,
    )
    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        nullable=False,
    )

    author: Mapped[User | None] = relationship("User")
    post: Mapped[Post] = relationship("Post", back_populates="answers")
