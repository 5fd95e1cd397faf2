"""Role-based authorization checks for course discussions."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy.orm import Session

from metis.core.roles import Role
from metis.models import Course, CourseMember, User
from metis.services.errors import AuthorizationError, FeatureDisabledError

logger = logging.getLogger(__name__)


class Authored(Protocol):
    """Anything with an author, i.e. posts and answer posts."""

    id: int
    author_id: int | None


class AuthorizationCheckService:
    """Answer "does this user hold at least role X in course Y" questions.

    The policies used by the discussion handlers are kept as separate
    predicates so they can be combined per operation:

    * creation: at least student and discussions enabled
    * ownership: author of the posting, or at least teaching assistant
    * approval: at least instructor
    """

    def __init__(self, session: Session) -> None:
        """Initialize the service with a SQLAlchemy session."""
        self.session = session

    def role_in_course(self, course: Course, user: User) -> Role | None:
        """Return the role ``user`` holds in ``course``, or None for outsiders."""
        if user.is_admin:
            return Role.ADMIN
        member = self.session.get(CourseMember, (course.id, user.id))
        if member is None:
            return None
        return member.role

    def has_at_least_role(self, role: Role, course: Course | None, user: User) -> bool:
        """Return True if ``user`` holds ``role`` or a higher one in ``course``."""
        if course is None:
            return False
        current = self.role_in_course(course, user)
        return current is not None and current >= role

    def check_has_at_least_role_or_throw(self, role: Role, course: Course | None, user: User) -> None:
        """Raise AuthorizationError unless ``user`` holds at least ``role``."""
        if not self.has_at_least_role(role, course, user):
            logger.debug(
                "User %s lacks role %s in course %s",
                user.login,
                role.name,
                course.id if course is not None else None,
            )
            raise AuthorizationError(
                "You are not allowed to perform this action in this course",
                key="forbidden",
            )

    def is_at_least_instructor(self, course: Course | None, user: User) -> bool:
        """Return True for instructors and administrators."""
        return self.has_at_least_role(Role.INSTRUCTOR, course, user)

    # Policies -----------------------------------------------------------------

    @staticmethod
    def check_posts_enabled_or_throw(course: Course) -> None:
        """Raise FeatureDisabledError if the course has discussions switched off."""
        if not course.posts_enabled:
            raise FeatureDisabledError(
                "Course with this Id does not have Posts enabled",
                key="postsDisabled",
            )

    def check_may_create_postings_or_throw(self, course: Course, user: User) -> None:
        """Enforce the creation policy for posts and answer posts."""
        self.check_has_at_least_role_or_throw(Role.STUDENT, course, user)
        self.check_posts_enabled_or_throw(course)

    @staticmethod
    def is_author(posting: Authored, user: User) -> bool:
        """Return True if ``user`` wrote ``posting``."""
        return posting.author_id is not None and posting.author_id == user.id

    def may_update_or_delete(self, posting: Authored, course: Course | None, user: User) -> bool:
        """Authors manage their own postings; staff manage everybody's."""
        if self.is_author(posting, user):
            return True
        return self.has_at_least_role(Role.TEACHING_ASSISTANT, course, user)

    def check_may_update_or_delete_or_throw(
        self,
        posting: Authored,
        course: Course | None,
        user: User,
    ) -> None:
        """Enforce the ownership policy."""
        if not self.may_update_or_delete(posting, course, user):
            logger.debug(
                "User %s may not modify posting %s",
                user.login,
                posting.id,
            )
            raise AuthorizationError(
                "You are not allowed to modify this posting",
                key="forbidden",
            )

    def may_set_approval(self, course: Course | None, user: User) -> bool:
        """Only instructors may mark an answer as approved."""
        return self.is_at_least_instructor(course, user)
