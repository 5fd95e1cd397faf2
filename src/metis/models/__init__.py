"""SQLAlchemy models for the Metis discussion service."""

from .course import Course, CourseMember
from .exercise import Exam, Exercise, ExerciseGroup
from .lecture import Lecture
from .notification import Notification
from .post import AnswerPost, CourseWideContext, Post, PostTag, Reaction
from .user import User

__all__ = [
    "Course", "CourseMember",
    "Exam", "Exercise", "ExerciseGroup",
    "Lecture",
    "Notification",
    "AnswerPost", "CourseWideContext", "Post", "PostTag", "Reaction",
    "User",
]
