"""Data access helpers for working with posts and answer posts."""
from __future__ import annotations

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from metis.models import AnswerPost, Exam, Exercise, ExerciseGroup, Lecture, Post, PostTag
from metis.services.errors import NotFoundError

__all__ = ["AnswerPostRepository", "PostRepository"]


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, post_id: int) -> Post | None:
        """Return a post by identifier."""
        return self.session.get(Post, post_id)

    def find_by_id_or_fail(self, post_id: int) -> Post:
        """Return a post or raise NotFoundError."""
        post = self.get_by_id(post_id)
        if post is None:
            raise NotFoundError(f"Post with id {post_id} not found", entity="post")
        return post

    def save(self, post: Post) -> Post:
        """Persist ``post`` and return the refreshed instance."""
        self.session.add(post)
        self.session.commit()
        self.session.refresh(post)
        return post

    def delete(self, post: Post) -> None:
        """Delete ``post`` together with its answers, reactions and tags."""
        self.session.delete(post)
        self.session.commit()

    def delete_by_id(self, post_id: int) -> None:
        """Delete the post with ``post_id``."""
        self.delete(self.find_by_id_or_fail(post_id))

    def list_for_course(self, course_id: int) -> list[Post]:
        """Return every post whose context resolves to ``course_id``.

        Mirrors the resolution order: lecture, then exercise (course or exam),
        then the explicit course reference.
        """
        lecture_ids = select(Lecture.id).where(Lecture.course_id == course_id)
        course_exercise_ids = select(Exercise.id).where(Exercise.course_id == course_id)
        exam_exercise_ids = (
            select(Exercise.id)
            .join(ExerciseGroup, Exercise.exercise_group_id == ExerciseGroup.id)
            .join(Exam, ExerciseGroup.exam_id == Exam.id)
            .where(Exam.course_id == course_id)
        )
        stmt = (
            select(Post)
            .where(
                or_(
                    Post.lecture_id.in_(lecture_ids),
                    (Post.lecture_id.is_(None)) & Post.exercise_id.in_(course_exercise_ids),
                    (Post.lecture_id.is_(None)) & Post.exercise_id.in_(exam_exercise_ids),
                    (Post.lecture_id.is_(None))
                    & (Post.exercise_id.is_(None))
                    & (Post.course_id == course_id),
                )
            )
            .order_by(Post.creation_date.desc(), Post.id.desc())
        )
        return list(self.session.scalars(stmt))

    def list_for_lecture(self, lecture_id: int) -> list[Post]:
        """Return posts attached to a lecture."""
        stmt = (
            select(Post)
            .where(Post.lecture_id == lecture_id)
            .order_by(Post.creation_date.desc(), Post.id.desc())
        )
        return list(self.session.scalars(stmt))

    def list_for_exercise(self, exercise_id: int) -> list[Post]:
        """Return posts attached to an exercise (and not to a lecture)."""
        stmt = (
            select(Post)
            .where(Post.exercise_id == exercise_id, Post.lecture_id.is_(None))
            .order_by(Post.creation_date.desc(), Post.id.desc())
        )
        return list(self.session.scalars(stmt))

    def list_tags_for_course(self, course_id: int) -> list[str]:
        """Return the distinct tags used by posts of a course, sorted."""
        post_ids = [post.id for post in self.list_for_course(course_id)]
        if not post_ids:
            return []
        stmt = (
            select(PostTag.tag)
            .where(PostTag.post_id.in_(post_ids))
            .distinct()
            .order_by(PostTag.tag)
        )
        return list(self.session.scalars(stmt))


class AnswerPostRepository:
    """Thin wrapper around database access for answer posts."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, answer_post_id: int) -> AnswerPost | None:
        """Return an answer post by identifier."""
        return self.session.get(AnswerPost, answer_post_id)

    def find_by_id_or_fail(self, answer_post_id: int) -> AnswerPost:
        """Return an answer post or raise NotFoundError."""
        answer = self.get_by_id(answer_post_id)
        if answer is None:
            raise NotFoundError(
                f"AnswerPost with id {answer_post_id} not found",
                entity="answerPost",
            )
        return answer

    def save(self, answer: AnswerPost) -> AnswerPost:
        """Persist ``answer`` and return the refreshed instance."""
        self.session.add(answer)
        self.session.commit()
        self.session.refresh(answer)
        return answer

    def delete_by_id(self, answer_post_id: int) -> None:
        """Delete only the answer post; its parent post is untouched."""
        answer = self.find_by_id_or_fail(answer_post_id)
        self.session.delete(answer)
        self.session.commit()
