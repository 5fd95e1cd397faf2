"""User-related Pydantic schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class UserSummary(BaseModel):
    """Public information about a posting author."""

    id: int
    login: str
    display_name: str | None = None

    model_config = ConfigDict(from_attributes=True)
