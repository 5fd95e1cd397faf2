"""Notification fan-out for new discussion activity.

Notifications are recorded as rows and delivered by another component. Emitting
them is fire-and-forget: a failure is logged and rolled back on its own, it
never undoes the posting that triggered it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from metis.core.roles import Role
from metis.models import AnswerPost, Course, Notification, Post
from metis.services.course_context import resolve_course

logger = logging.getLogger(__name__)

NEW_POST_FOR_EXERCISE_TITLE = "New exercise post"
NEW_POST_FOR_LECTURE_TITLE = "New lecture post"
NEW_COURSE_POST_TITLE = "New course-wide post"
NEW_ANSWER_FOR_EXERCISE_TITLE = "New reply for exercise post"
NEW_ANSWER_FOR_LECTURE_TITLE = "New reply for lecture post"

_Subject = TypeVar("_Subject")


def notify_quietly(notify: Callable[[_Subject], object], subject: _Subject) -> None:
    """Run a ``notify_*`` call without letting its failure reach the caller.

    The posting that triggered the notification is already committed, so any
    error here is logged and dropped.
    """
    try:
        notify(subject)
    except Exception:
        logger.exception(
            "Notification %s failed for %r",
            getattr(notify, "__name__", notify),
            subject,
        )


class _NotificationWriter:
    """Shared persistence for the notification services."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _record(self, notification: Notification) -> Notification | None:
        try:
            self.session.add(notification)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Failed to record notification %r", notification.title)
            return None
        logger.debug(
            "Recorded notification %r (course=%s, role=%s, recipient=%s)",
            notification.title,
            notification.course_id,
            notification.target_role,
            notification.recipient_id,
        )
        return notification


def _post_label(post: Post) -> str:
    return post.title or f"post #{post.id}"


class GroupNotificationService(_NotificationWriter):
    """Notify the staff group (teaching assistants, editors, instructors) of a course."""

    def _notify_staff(
        self,
        course: Course | None,
        title: str,
        text: str,
        *,
        post_id: int | None = None,
        answer_post_id: int | None = None,
    ) -> Notification | None:
        if course is None:
            logger.warning("Skipping staff notification %r without a course", title)
            return None
        return self._record(
            Notification(
                title=title,
                text=text,
                course_id=course.id,
                target_role=Role.TEACHING_ASSISTANT,
                post_id=post_id,
                answer_post_id=answer_post_id,
            )
        )

    def notify_staff_about_new_post(self, post: Post) -> Notification | None:
        """Announce a new post to the course staff."""
        if post.lecture is not None:
            title = NEW_POST_FOR_LECTURE_TITLE
            text = f"Lecture \"{post.lecture.title}\" got a new post."
        elif post.exercise is not None:
            title = NEW_POST_FOR_EXERCISE_TITLE
            text = f"Exercise \"{post.exercise.title}\" got a new post."
        else:
            title = NEW_COURSE_POST_TITLE
            text = f"The course got a new post: {_post_label(post)}."
        return self._notify_staff(resolve_course(post), title, text, post_id=post.id)

    def notify_staff_about_new_answer_for_exercise(self, answer: AnswerPost) -> Notification | None:
        """Announce a reply to an exercise post to the course staff."""
        post = answer.post
        return self._notify_staff(
            resolve_course(post),
            NEW_ANSWER_FOR_EXERCISE_TITLE,
            f"Exercise \"{post.exercise.title}\" got a new reply to {_post_label(post)}.",
            post_id=post.id,
            answer_post_id=answer.id,
        )

    def notify_staff_about_new_answer_for_lecture(self, answer: AnswerPost) -> Notification | None:
        """Announce a reply to a lecture post to the course staff."""
        post = answer.post
        return self._notify_staff(
            resolve_course(post),
            NEW_ANSWER_FOR_LECTURE_TITLE,
            f"Lecture \"{post.lecture.title}\" got a new reply to {_post_label(post)}.",
            post_id=post.id,
            answer_post_id=answer.id,
        )


class SingleUserNotificationService(_NotificationWriter):
    """Notify the author of a post about replies to it."""

    def _notify_post_author(self, answer: AnswerPost, title: str, text: str) -> Notification | None:
        post = answer.post
        if post.author_id is None:
            return None
        # Replying to your own post is not news to you.
        if post.author_id == answer.author_id:
            return None
        course = resolve_course(post)
        return self._record(
            Notification(
                title=title,
                text=text,
                course_id=course.id if course is not None else None,
                recipient_id=post.author_id,
                post_id=post.id,
                answer_post_id=answer.id,
            )
        )

    def notify_user_about_new_answer_for_exercise(self, answer: AnswerPost) -> Notification | None:
        """Tell the post author that their exercise post got a reply."""
        post = answer.post
        return self._notify_post_author(
            answer,
            NEW_ANSWER_FOR_EXERCISE_TITLE,
            f"Your post {_post_label(post)} on exercise \"{post.exercise.title}\" got a new reply.",
        )

    def notify_user_about_new_answer_for_lecture(self, answer: AnswerPost) -> Notification | None:
        """Tell the post author that their lecture post got a reply."""
        post = answer.post
        return self._notify_post_author(
            answer,
            NEW_ANSWER_FOR_LECTURE_TITLE,
            f"Your post {_post_label(post)} on lecture \"{post.lecture.title}\" got a new reply.",
        )
