# tests/services/test_answer_post_service.py
"""Tests for the answer post lifecycle handler."""

from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from metis.core.roles import Role
from metis.models import AnswerPost, Notification, Post
from metis.schemas.post import AnswerPostCreate, AnswerPostUpdate, PostRef
from metis.services.answer_posts import AnswerPostService
from metis.services.errors import (
    AuthorizationError,
    ConsistencyError,
    FeatureDisabledError,
    NotFoundError,
)
from metis.services.notifications import GroupNotificationService


def _answer_count(db_session) -> int:
    return db_session.scalar(select(func.count()).select_from(AnswerPost))


def _create(post: Post, content: str = "Use print().", **kwargs) -> AnswerPostCreate:
    return AnswerPostCreate(content=content, post=PostRef(id=post.id), **kwargs)


class TestCreateAnswerPost:
    """Creating replies."""

    def test_student_reply_is_not_approved(self, db_session, course, exercise_post, other_student) -> None:
        result = AnswerPostService(db_session).create_answer_post(
            course.id, _create(exercise_post), other_student
        )

        assert result.id is not None
        assert result.tutor_approved is False
        assert result.author is not None and result.author.id == other_student.id
        assert result.post.id == exercise_post.id
        assert db_session.get(AnswerPost, result.id) is not None

    def test_instructor_reply_is_approved(self, db_session, course, exercise_post, instructor) -> None:
        result = AnswerPostService(db_session).create_answer_post(
            course.id, _create(exercise_post), instructor
        )

        assert result.tutor_approved is True

    def test_client_approval_flag_is_ignored(self, db_session, course, lecture_post, other_student) -> None:
        result = AnswerPostService(db_session).create_answer_post(
            course.id, _create(lecture_post, tutor_approved=True), other_student
        )

        assert result.tutor_approved is False

    def test_client_supplied_id_is_rejected(self, db_session, course, exercise_post, student) -> None:
        with pytest.raises(ConsistencyError) as exc_info:
            AnswerPostService(db_session).create_answer_post(
                course.id, _create(exercise_post, id=42), student
            )

        assert exc_info.value.key == "idexists"
        assert _answer_count(db_session) == 0

    def test_course_mismatch_is_rejected(self, db_session, other_course, exercise_post, student) -> None:
        with pytest.raises(ConsistencyError):
            AnswerPostService(db_session).create_answer_post(
                other_course.id, _create(exercise_post), student
            )
        assert _answer_count(db_session) == 0

    def test_course_mismatch_checked_before_client_id(self, db_session, other_course, exercise_post, student) -> None:
        with pytest.raises(ConsistencyError) as exc_info:
            AnswerPostService(db_session).create_answer_post(
                other_course.id, _create(exercise_post, id=7), student
            )

        assert exc_info.value.key == "courseId"

    def test_disabled_discussions_are_rejected(self, db_session, course, exercise_post, student) -> None:
        course.posts_enabled = False
        db_session.flush()

        with pytest.raises(FeatureDisabledError):
            AnswerPostService(db_session).create_answer_post(course.id, _create(exercise_post), student)
        assert _answer_count(db_session) == 0

    def test_outsider_is_forbidden(self, db_session, course, exercise_post, outsider) -> None:
        with pytest.raises(AuthorizationError):
            AnswerPostService(db_session).create_answer_post(course.id, _create(exercise_post), outsider)
        assert _answer_count(db_session) == 0

    def test_unknown_post_is_not_found(self, db_session, course, student) -> None:
        data = AnswerPostCreate(content="hi", post=PostRef(id=9999))

        with pytest.raises(NotFoundError):
            AnswerPostService(db_session).create_answer_post(course.id, data, student)

    def test_unknown_course_is_not_found(self, db_session, exercise_post, student) -> None:
        with pytest.raises(NotFoundError):
            AnswerPostService(db_session).create_answer_post(9999, _create(exercise_post), student)

    def test_exercise_reply_notifies_staff_and_author(self, db_session, course, exercise_post, other_student) -> None:
        result = AnswerPostService(db_session).create_answer_post(
            course.id, _create(exercise_post), other_student
        )

        notifications = db_session.scalars(
            select(Notification).where(Notification.answer_post_id == result.id)
        ).all()
        group = [n for n in notifications if n.target_role is not None]
        single = [n for n in notifications if n.recipient_id is not None]
        assert len(group) == 1 and group[0].target_role is Role.TEACHING_ASSISTANT
        assert group[0].course_id == course.id
        assert len(single) == 1 and single[0].recipient_id == exercise_post.author_id

    def test_lecture_reply_notifies_staff_and_author(self, db_session, course, lecture_post, tutor) -> None:
        result = AnswerPostService(db_session).create_answer_post(course.id, _create(lecture_post), tutor)

        count = db_session.scalar(
            select(func.count()).select_from(Notification).where(Notification.answer_post_id == result.id)
        )
        assert count == 2

    def test_course_wide_reply_sends_no_notification(self, db_session, course, course_post, tutor) -> None:
        AnswerPostService(db_session).create_answer_post(course.id, _create(course_post), tutor)

        assert db_session.scalar(select(func.count()).select_from(Notification)) == 0

    def test_own_post_reply_skips_author_notification(self, db_session, course, exercise_post, student) -> None:
        result = AnswerPostService(db_session).create_answer_post(course.id, _create(exercise_post), student)

        recipients = db_session.scalars(
            select(Notification.recipient_id).where(Notification.answer_post_id == result.id)
        ).all()
        assert recipients == [None]

    def test_exercise_sensitive_fields_are_stripped(self, db_session, course, exercise_post, exercise, student) -> None:
        result = AnswerPostService(db_session).create_answer_post(course.id, _create(exercise_post), student)

        assert result.post.exercise is not None
        assert result.post.exercise.sample_solution is None
        assert result.post.exercise.grading_instructions is None
        # Only the response is filtered, never the stored exercise.
        db_session.refresh(exercise)
        assert exercise.sample_solution == "print('the answer')"
        assert exercise.grading_instructions == "Full points for printing the answer."

    def test_notification_failure_keeps_reply(self, db_session, course, exercise_post, other_student) -> None:
        broken_session = MagicMock()
        broken_session.commit.side_effect = SQLAlchemyError("notification store down")
        service = AnswerPostService(
            db_session,
            group_notifications=GroupNotificationService(broken_session),
        )

        result = service.create_answer_post(course.id, _create(exercise_post), other_student)

        assert db_session.get(AnswerPost, result.id) is not None
        broken_session.rollback.assert_called_once()

    @pytest.mark.parametrize("error", [RuntimeError("delivery broke"), AttributeError("title")])
    def test_any_notification_error_keeps_reply(
        self, db_session, course, exercise_post, other_student, error, caplog
    ) -> None:
        group_notifications = MagicMock()
        group_notifications.notify_staff_about_new_answer_for_exercise.side_effect = error
        service = AnswerPostService(db_session, group_notifications=group_notifications)

        result = service.create_answer_post(course.id, _create(exercise_post), other_student)

        assert db_session.get(AnswerPost, result.id) is not None
        assert "Notification" in caplog.text
        # The author notification still goes out after the staff one failed.
        author_notifications = db_session.scalars(
            select(Notification).where(Notification.recipient_id == exercise_post.author_id)
        ).all()
        assert [n.answer_post_id for n in author_notifications] == [result.id]


class TestUpdateAnswerPost:
    """Updating replies."""

    def test_author_updates_content(self, db_session, course, exercise_post, other_student, make_answer) -> None:
        answer = make_answer(exercise_post, other_student)

        result = AnswerPostService(db_session).update_answer_post(
            course.id, AnswerPostUpdate(id=answer.id, content="Edited"), other_student
        )

        assert result.content == "Edited"
        assert db_session.get(AnswerPost, answer.id).content == "Edited"

    def test_non_author_student_is_forbidden(self, db_session, course, exercise_post, student, other_student, make_answer) -> None:
        answer = make_answer(exercise_post, student, content="Original")

        with pytest.raises(AuthorizationError):
            AnswerPostService(db_session).update_answer_post(
                course.id, AnswerPostUpdate(id=answer.id, content="Hijacked"), other_student
            )
        db_session.refresh(answer)
        assert answer.content == "Original"

    def test_tutor_may_update_any_reply(self, db_session, course, exercise_post, student, tutor, make_answer) -> None:
        answer = make_answer(exercise_post, student)

        result = AnswerPostService(db_session).update_answer_post(
            course.id, AnswerPostUpdate(id=answer.id, content="Clarified by tutor"), tutor
        )

        assert result.content == "Clarified by tutor"

    def test_non_instructor_cannot_change_approval(self, db_session, course, exercise_post, student, tutor, make_answer) -> None:
        answer = make_answer(exercise_post, student)

        AnswerPostService(db_session).update_answer_post(
            course.id, AnswerPostUpdate(id=answer.id, content="Edited", tutor_approved=True), tutor
        )
        AnswerPostService(db_session).update_answer_post(
            course.id, AnswerPostUpdate(id=answer.id, content="Edited again", tutor_approved=True), student
        )

        assert db_session.get(AnswerPost, answer.id).tutor_approved is False

    def test_author_edit_keeps_existing_approval(self, db_session, course, exercise_post, student, make_answer) -> None:
        answer = make_answer(exercise_post, student, approved=True)

        AnswerPostService(db_session).update_answer_post(
            course.id, AnswerPostUpdate(id=answer.id, content="Typo fixed"), student
        )

        assert db_session.get(AnswerPost, answer.id).tutor_approved is True

    def test_instructor_toggles_approval(self, db_session, course, exercise_post, student, instructor, make_answer) -> None:
        answer = make_answer(exercise_post, student)

        result = AnswerPostService(db_session).update_answer_post(
            course.id,
            AnswerPostUpdate(id=answer.id, content=answer.content, tutor_approved=True),
            instructor,
        )

        assert result.tutor_approved is True

    def test_missing_id_is_rejected(self, db_session, course, student) -> None:
        with pytest.raises(ConsistencyError) as exc_info:
            AnswerPostService(db_session).update_answer_post(
                course.id, AnswerPostUpdate(content="No id"), student
            )

        assert exc_info.value.key == "idnull"

    def test_unknown_reply_is_not_found(self, db_session, course, student) -> None:
        with pytest.raises(NotFoundError):
            AnswerPostService(db_session).update_answer_post(
                course.id, AnswerPostUpdate(id=9999, content="Ghost"), student
            )

    def test_course_mismatch_is_rejected(self, db_session, course, other_course, exercise_post, student, make_answer) -> None:
        answer = make_answer(exercise_post, student, content="Original")

        with pytest.raises(ConsistencyError):
            AnswerPostService(db_session).update_answer_post(
                other_course.id, AnswerPostUpdate(id=answer.id, content="Moved"), student
            )
        db_session.refresh(answer)
        assert answer.content == "Original"

    def test_exercise_sensitive_fields_are_stripped(self, db_session, course, exercise_post, student, make_answer) -> None:
        answer = make_answer(exercise_post, student)

        result = AnswerPostService(db_session).update_answer_post(
            course.id, AnswerPostUpdate(id=answer.id, content="Edited"), student
        )

        assert result.post.exercise.sample_solution is None


class TestDeleteAnswerPost:
    """Deleting replies."""

    def test_author_deletes_own_reply(self, db_session, course, exercise_post, other_student, make_answer) -> None:
        answer = make_answer(exercise_post, other_student)
        answer_id = answer.id

        AnswerPostService(db_session).delete_answer_post(course.id, answer_id, other_student)

        assert db_session.get(AnswerPost, answer_id) is None
        assert db_session.get(Post, exercise_post.id) is not None

    def test_tutor_deletes_any_reply(self, db_session, course, lecture_post, student, tutor, make_answer) -> None:
        answer = make_answer(lecture_post, student)
        answer_id = answer.id

        AnswerPostService(db_session).delete_answer_post(course.id, answer_id, tutor)

        assert db_session.get(AnswerPost, answer_id) is None

    def test_non_author_student_is_forbidden(self, db_session, course, exercise_post, student, other_student, make_answer) -> None:
        answer = make_answer(exercise_post, student)

        with pytest.raises(AuthorizationError):
            AnswerPostService(db_session).delete_answer_post(course.id, answer.id, other_student)
        assert db_session.get(AnswerPost, answer.id) is not None

    def test_orphaned_post_is_rejected(self, db_session, course, student, make_answer) -> None:
        orphan = Post(content="Lost thread", author=student)
        db_session.add(orphan)
        db_session.flush()
        answer = make_answer(orphan, student)

        with pytest.raises(ConsistencyError):
            AnswerPostService(db_session).delete_answer_post(course.id, answer.id, student)
        assert db_session.get(AnswerPost, answer.id) is not None

    def test_course_mismatch_is_rejected(self, db_session, other_course, exercise_post, student, make_answer) -> None:
        answer = make_answer(exercise_post, student)

        with pytest.raises(ConsistencyError):
            AnswerPostService(db_session).delete_answer_post(other_course.id, answer.id, student)
        assert db_session.get(AnswerPost, answer.id) is not None

    def test_unknown_reply_is_not_found(self, db_session, course, student) -> None:
        with pytest.raises(NotFoundError):
            AnswerPostService(db_session).delete_answer_post(course.id, 9999, student)

    def test_delete_sends_no_notification(self, db_session, course, exercise_post, student, make_answer) -> None:
        answer = make_answer(exercise_post, student)

        AnswerPostService(db_session).delete_answer_post(course.id, answer.id, student)

        assert db_session.scalar(select(func.count()).select_from(Notification)) == 0

    def test_exam_exercise_reply_resolves_course(self, db_session, course, exam_exercise, student, make_answer) -> None:
        post = Post(content="Exam question", exercise=exam_exercise, author=student)
        db_session.add(post)
        db_session.flush()
        answer = make_answer(post, student)
        answer_id = answer.id

        AnswerPostService(db_session).delete_answer_post(course.id, answer_id, student)

        assert db_session.get(AnswerPost, answer_id) is None
