"""Create, update and delete answer posts (replies to a discussion post)."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from metis.models import AnswerPost, User
from metis.repositories.course_repo import CourseRepository
from metis.repositories.post_repo import AnswerPostRepository, PostRepository
from metis.schemas.post import AnswerPostCreate, AnswerPostResponse, AnswerPostUpdate
from metis.services.authorization import AuthorizationCheckService
from metis.services.course_context import (
    ExerciseScope,
    LectureScope,
    post_scope,
    resolve_answer_course,
    resolve_course,
)
from metis.services.errors import ConsistencyError
from metis.services.notifications import (
    GroupNotificationService,
    SingleUserNotificationService,
    notify_quietly,
)

logger = logging.getLogger(__name__)

ENTITY_NAME = "answerPost"


def to_answer_post_response(answer: AnswerPost) -> AnswerPostResponse:
    """Convert an AnswerPost ORM instance to an API schema without staff-only data."""
    response = AnswerPostResponse.model_validate(answer)
    response.post.filter_sensitive_information()
    return response


class AnswerPostService:
    """Lifecycle of answer posts: absent -> create -> active -> update* -> delete -> absent.

    Every check runs before anything is written. Notifications are sent only
    after the answer post is committed and never affect the outcome.
    """

    def __init__(
        self,
        session: Session,
        *,
        authorization: AuthorizationCheckService | None = None,
        group_notifications: GroupNotificationService | None = None,
        single_user_notifications: SingleUserNotificationService | None = None,
    ) -> None:
        self.session = session
        self.courses = CourseRepository(session)
        self.posts = PostRepository(session)
        self.answer_posts = AnswerPostRepository(session)
        self.authorization = authorization or AuthorizationCheckService(session)
        self.group_notifications = group_notifications or GroupNotificationService(session)
        self.single_user_notifications = (
            single_user_notifications or SingleUserNotificationService(session)
        )

    def create_answer_post(
        self,
        course_id: int,
        answer_data: AnswerPostCreate,
        user: User,
    ) -> AnswerPostResponse:
        """Create a reply to an existing post.

        Args:
            course_id: Course identifier from the request path.
            answer_data: Candidate answer post; must not carry an id.
            user: Authenticated caller, who becomes the author.

        Returns:
            The persisted answer post with its new identifier.

        Raises:
            NotFoundError: If the course or the parent post does not exist.
            ConsistencyError: If the post belongs to another course or an id was supplied.
            FeatureDisabledError: If the course has discussions switched off.
            AuthorizationError: If the caller is not at least a student of the course.
        """
        logger.debug("Request to save AnswerPost for post %s by %s", answer_data.post.id, user.login)
        course = self.courses.find_by_id_or_fail(course_id)
        # The stored post wins over whatever the client nested into the body.
        post = self.posts.find_by_id_or_fail(answer_data.post.id)

        post_course = resolve_course(post)
        if post_course is None or post_course.id != course_id:
            raise ConsistencyError(
                "PathVariable courseId doesn't match courseId of the AnswerPost in the body "
                "that should be added",
                entity=ENTITY_NAME,
                key="courseId",
            )
        self.authorization.check_posts_enabled_or_throw(course)
        if answer_data.id is not None:
            raise ConsistencyError(
                "A new answerPost cannot already have an ID",
                entity=ENTITY_NAME,
                key="idexists",
            )
        self.authorization.check_may_create_postings_or_throw(course, user)

        answer = AnswerPost(
            content=answer_data.content,
            # Answers written by instructors are approved right away.
            tutor_approved=self.authorization.is_at_least_instructor(course, user),
            post=post,
            author=user,
        )
        result = self.answer_posts.save(answer)
        logger.info("AnswerPost %s created by %s for post %s", result.id, user.login, post.id)

        scope = post_scope(result.post)
        group = self.group_notifications
        single = self.single_user_notifications
        if isinstance(scope, ExerciseScope):
            notify_quietly(group.notify_staff_about_new_answer_for_exercise, result)
            notify_quietly(single.notify_user_about_new_answer_for_exercise, result)
        elif isinstance(scope, LectureScope):
            notify_quietly(group.notify_staff_about_new_answer_for_lecture, result)
            notify_quietly(single.notify_user_about_new_answer_for_lecture, result)

        return to_answer_post_response(result)

    def update_answer_post(
        self,
        course_id: int,
        answer_data: AnswerPostUpdate,
        user: User,
    ) -> AnswerPostResponse:
        """Update content (and, for instructors, approval) of an answer post.

        Raises:
            ConsistencyError: If no id was supplied or the answer belongs to another course.
            NotFoundError: If the course or the answer post does not exist.
            AuthorizationError: If the caller is neither the author nor staff.
        """
        logger.debug("Request to update AnswerPost %s by %s", answer_data.id, user.login)
        if answer_data.id is None:
            raise ConsistencyError("Invalid id", entity=ENTITY_NAME, key="idnull")
        course = self.courses.find_by_id_or_fail(course_id)
        existing = self.answer_posts.find_by_id_or_fail(answer_data.id)

        answer_course = resolve_answer_course(existing)
        if answer_course is None or answer_course.id != course_id:
            raise ConsistencyError(
                "PathVariable courseId doesn't match courseId of the AnswerPost in the body",
                entity=ENTITY_NAME,
                key="courseId",
            )
        self.authorization.check_may_update_or_delete_or_throw(existing, answer_course, user)

        existing.content = answer_data.content
        if self.authorization.may_set_approval(course, user):
            existing.tutor_approved = answer_data.tutor_approved
        result = self.answer_posts.save(existing)
        return to_answer_post_response(result)

    def delete_answer_post(self, course_id: int, answer_post_id: int, user: User) -> None:
        """Permanently remove a single answer post.

        Raises:
            NotFoundError: If the answer post or the course does not exist.
            ConsistencyError: If the answer's post has no course or belongs to another one.
            AuthorizationError: If the caller is neither the author nor staff.
        """
        existing = self.answer_posts.find_by_id_or_fail(answer_post_id)
        self.courses.find_by_id_or_fail(course_id)

        answer_course = resolve_answer_course(existing)
        if answer_course is None:
            raise ConsistencyError(
                "The post of this AnswerPost does not belong to any course",
                entity=ENTITY_NAME,
                key="courseId",
            )
        if answer_course.id != course_id:
            raise ConsistencyError(
                "PathVariable courseId doesnt match courseId of the AnswerPost that should be deleted",
                entity=ENTITY_NAME,
                key="courseId",
            )
        self.authorization.check_may_update_or_delete_or_throw(existing, answer_course, user)

        scope = post_scope(existing.post)
        if isinstance(scope, LectureScope):
            context = f"lecture with id: {scope.lecture.id}"
        elif isinstance(scope, ExerciseScope):
            context = f"exercise with id: {scope.exercise.id}"
        else:
            context = f"course with id: {answer_course.id}"
        logger.info(
            "AnswerPost deleted by %s. Answer: %s for %s",
            user.login,
            existing.content,
            context,
        )
        self.answer_posts.delete_by_id(answer_post_id)
