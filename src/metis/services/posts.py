"""Create, update, vote on, list and delete discussion posts."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from metis.core.settings import settings
from metis.models import Course, Post, PostTag, User
from metis.repositories.course_repo import (
    CourseRepository,
    ExerciseRepository,
    LectureRepository,
)
from metis.repositories.post_repo import PostRepository
from metis.schemas.post import PostCreate, PostResponse, PostUpdate
from metis.services.authorization import AuthorizationCheckService
from metis.services.course_context import resolve_course
from metis.services.errors import ConsistencyError
from metis.services.notifications import GroupNotificationService, notify_quietly

logger = logging.getLogger(__name__)

ENTITY_NAME = "post"


def to_post_response(post: Post) -> PostResponse:
    """Convert a Post ORM instance to an API schema without staff-only data."""
    response = PostResponse.model_validate(post)
    response.filter_sensitive_information()
    return response


def _replace_tags(post: Post, tags: list[str]) -> None:
    # Unchanged tags keep their rows so no key is deleted and re-inserted in one flush.
    wanted = set(tags)
    post.tag_rows = [row for row in post.tag_rows if row.tag in wanted]
    kept = {row.tag for row in post.tag_rows}
    post.tag_rows.extend(PostTag(tag=tag) for tag in sorted(wanted - kept))


class PostService:
    """Lifecycle of thread-root posts, following the same rules as answer posts."""

    def __init__(
        self,
        session: Session,
        *,
        authorization: AuthorizationCheckService | None = None,
        group_notifications: GroupNotificationService | None = None,
    ) -> None:
        self.session = session
        self.courses = CourseRepository(session)
        self.lectures = LectureRepository(session)
        self.exercises = ExerciseRepository(session)
        self.posts = PostRepository(session)
        self.authorization = authorization or AuthorizationCheckService(session)
        self.group_notifications = group_notifications or GroupNotificationService(session)

    def _check_course_matches(self, post: Post, course_id: int, message: str) -> Course:
        post_course = resolve_course(post)
        if post_course is None or post_course.id != course_id:
            raise ConsistencyError(message, entity=ENTITY_NAME, key="courseId")
        return post_course

    def create_post(self, course_id: int, post_data: PostCreate, user: User) -> PostResponse:
        """Create a post attached to a lecture, an exercise or the course itself.

        Raises:
            ConsistencyError: If the post has no context or more than one, belongs
                to another course, or already carries an id.
            NotFoundError: If the course, lecture or exercise does not exist.
            FeatureDisabledError: If the course has discussions switched off.
            AuthorizationError: If the caller is not at least a student of the course.
        """
        logger.debug("Request to save Post in course %s by %s", course_id, user.login)
        course = self.courses.find_by_id_or_fail(course_id)
        contexts = [
            post_data.lecture_id is not None,
            post_data.exercise_id is not None,
            post_data.course_wide_context is not None or post_data.course_id is not None,
        ]
        if sum(contexts) > 1:
            raise ConsistencyError(
                "A post belongs to exactly one of lecture, exercise or course",
                entity=ENTITY_NAME,
                key="contextAmbiguous",
            )

        post = Post(
            title=post_data.title,
            content=post_data.content,
            visible_for_students=post_data.visible_for_students,
            votes=0,
            author=user,
        )
        if post_data.lecture_id is not None:
            post.lecture = self.lectures.find_by_id_or_fail(post_data.lecture_id)
        elif post_data.exercise_id is not None:
            post.exercise = self.exercises.find_by_id_or_fail(post_data.exercise_id)
        elif post_data.course_wide_context is not None or post_data.course_id is not None:
            explicit_id = post_data.course_id if post_data.course_id is not None else course_id
            post.course = self.courses.find_by_id_or_fail(explicit_id)
            post.course_wide_context = post_data.course_wide_context
        else:
            raise ConsistencyError(
                "A post needs a lecture, an exercise or a course-wide context",
                entity=ENTITY_NAME,
                key="contextMissing",
            )

        # The candidate is not in the session yet, so rejecting it writes nothing.
        self._check_course_matches(
            post,
            course_id,
            "PathVariable courseId doesn't match courseId of the Post in the body "
            "that should be added",
        )
        self.authorization.check_posts_enabled_or_throw(course)
        if post_data.id is not None:
            raise ConsistencyError(
                "A new post cannot already have an ID",
                entity=ENTITY_NAME,
                key="idexists",
            )
        self.authorization.check_may_create_postings_or_throw(course, user)

        post.tags = post_data.tags
        result = self.posts.save(post)
        logger.info("Post %s created by %s in course %s", result.id, user.login, course_id)
        notify_quietly(self.group_notifications.notify_staff_about_new_post, result)
        return to_post_response(result)

    def update_post(self, course_id: int, post_data: PostUpdate, user: User) -> PostResponse:
        """Update title, content, tags and visibility of a post.

        Raises:
            ConsistencyError: If no id was supplied or the post belongs to another course.
            NotFoundError: If the course or the post does not exist.
            AuthorizationError: If the caller is neither the author nor staff.
        """
        logger.debug("Request to update Post %s by %s", post_data.id, user.login)
        if post_data.id is None:
            raise ConsistencyError("Invalid id", entity=ENTITY_NAME, key="idnull")
        self.courses.find_by_id_or_fail(course_id)
        existing = self.posts.find_by_id_or_fail(post_data.id)
        post_course = self._check_course_matches(
            existing,
            course_id,
            "PathVariable courseId doesn't match courseId of the Post in the body",
        )
        self.authorization.check_may_update_or_delete_or_throw(existing, post_course, user)

        existing.title = post_data.title
        existing.content = post_data.content
        existing.visible_for_students = post_data.visible_for_students
        _replace_tags(existing, post_data.tags)
        result = self.posts.save(existing)
        return to_post_response(result)

    def update_votes(self, course_id: int, post_id: int, vote_change: int, user: User) -> PostResponse:
        """Apply a bounded vote change to a post.

        Raises:
            ConsistencyError: If the change is out of bounds or the post belongs to another course.
            NotFoundError: If the course or the post does not exist.
            AuthorizationError: If the caller may not take part in the course discussion.
        """
        limit = settings.max_vote_change
        if vote_change < -limit or vote_change > limit:
            raise ConsistencyError(
                f"voteChange must be between -{limit} and {limit}",
                entity=ENTITY_NAME,
                key="voteChange",
            )
        course = self.courses.find_by_id_or_fail(course_id)
        existing = self.posts.find_by_id_or_fail(post_id)
        self._check_course_matches(
            existing,
            course_id,
            "PathVariable courseId doesn't match courseId of the Post",
        )
        self.authorization.check_may_create_postings_or_throw(course, user)

        existing.votes = existing.votes + vote_change
        result = self.posts.save(existing)
        return to_post_response(result)

    def delete_post(self, course_id: int, post_id: int, user: User) -> None:
        """Delete a post together with its answers, reactions and tags.

        Raises:
            NotFoundError: If the post or the course does not exist.
            ConsistencyError: If the post has no course or belongs to another one.
            AuthorizationError: If the caller is neither the author nor staff.
        """
        existing = self.posts.find_by_id_or_fail(post_id)
        self.courses.find_by_id_or_fail(course_id)
        post_course = resolve_course(existing)
        if post_course is None:
            raise ConsistencyError(
                "This post does not belong to any course",
                entity=ENTITY_NAME,
                key="courseId",
            )
        if post_course.id != course_id:
            raise ConsistencyError(
                "PathVariable courseId doesnt match courseId of the Post that should be deleted",
                entity=ENTITY_NAME,
                key="courseId",
            )
        self.authorization.check_may_update_or_delete_or_throw(existing, post_course, user)

        logger.info(
            "Post deleted by %s. Post: %s with %d answers",
            user.login,
            existing.content,
            len(existing.answers),
        )
        self.posts.delete(existing)

    # Queries ------------------------------------------------------------------

    def _visible(self, posts: list[Post], course: Course, user: User) -> list[PostResponse]:
        role = self.authorization.role_in_course(course, user)
        is_staff = role is not None and role.is_staff
        return [to_post_response(post) for post in posts if is_staff or post.visible_for_students]

    def list_course_posts(self, course_id: int, user: User) -> list[PostResponse]:
        """Return all posts whose context resolves to the course."""
        course = self.courses.find_by_id_or_fail(course_id)
        self.authorization.check_may_create_postings_or_throw(course, user)
        return self._visible(self.posts.list_for_course(course_id), course, user)

    def list_lecture_posts(self, course_id: int, lecture_id: int, user: User) -> list[PostResponse]:
        """Return the posts of a lecture of the course."""
        course = self.courses.find_by_id_or_fail(course_id)
        lecture = self.lectures.find_by_id_or_fail(lecture_id)
        if lecture.course_id != course_id:
            raise ConsistencyError(
                "PathVariable courseId doesn't match the course of the lecture",
                entity=ENTITY_NAME,
                key="courseId",
            )
        self.authorization.check_may_create_postings_or_throw(course, user)
        return self._visible(self.posts.list_for_lecture(lecture_id), course, user)

    def list_exercise_posts(self, course_id: int, exercise_id: int, user: User) -> list[PostResponse]:
        """Return the posts of an exercise of the course."""
        course = self.courses.find_by_id_or_fail(course_id)
        exercise = self.exercises.find_by_id_or_fail(exercise_id)
        exercise_course = exercise.course_via_exercise_group_or_course_member()
        if exercise_course is None or exercise_course.id != course_id:
            raise ConsistencyError(
                "PathVariable courseId doesn't match the course of the exercise",
                entity=ENTITY_NAME,
                key="courseId",
            )
        self.authorization.check_may_create_postings_or_throw(course, user)
        return self._visible(self.posts.list_for_exercise(exercise_id), course, user)

    def list_course_tags(self, course_id: int, user: User) -> list[str]:
        """Return the distinct tags used in the course, sorted."""
        course = self.courses.find_by_id_or_fail(course_id)
        self.authorization.check_may_create_postings_or_throw(course, user)
        return self.posts.list_tags_for_course(course_id)
