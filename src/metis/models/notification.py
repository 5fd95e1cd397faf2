"""Notification records produced by discussion activity."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from metis.core.roles import Role
from metis.db.session import Base
from metis.db.time import utcnow


class Notification(Base):
    """Pending notification for a course staff group or a single user.

    Group notifications set ``course_id`` and ``target_role``; single-user
    notifications set ``recipient_id``. Delivery happens elsewhere.
    """

    __tablename__ = "notification"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    course_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("course.id", ondelete="CASCADE"),
        nullable=True,
    )
    target_role: Mapped[Role | None] = mapped_column(
        Enum(Role, native_enum=False, length=32),
        nullable=True,
    )
    recipient_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("user_account.id", ondelete="CASCADE"),
        nullable=True,
    )

    # Plain references so notifications outlive the postings they describe.
    post_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    answer_post_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
