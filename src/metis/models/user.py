"""SQLAlchemy model for platform users."""

from __future__ import annotations

from sqlalchemy import Boolean, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from metis.db.session import Base


class User(Base):
    """Authenticated principal identified by a unique login."""

    __tablename__ = "user_account"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    login: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Platform administrators hold every role in every course.
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
