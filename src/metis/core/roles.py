"""Course roles ordered by privilege."""

from __future__ import annotations

from enum import IntEnum


class Role(IntEnum):
    """Role a user holds within a course.

    The integer values define the ordering used by "at least" checks, so a
    higher value always implies every permission of the lower ones.
    """

    STUDENT = 1
    TEACHING_ASSISTANT = 2
    EDITOR = 3
    INSTRUCTOR = 4
    # Administrators implicitly hold every role in every course.
    ADMIN = 5

    @property
    def is_staff(self) -> bool:
        """Return True for roles that belong to the course staff group."""
        return self >= Role.TEACHING_ASSISTANT
