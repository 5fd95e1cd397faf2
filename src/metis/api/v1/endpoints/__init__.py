"""API endpoint modules for version 1."""

from .answer_posts import router as answer_posts_router
from .posts import router as posts_router

__all__ = [
    "answer_posts_router",
    "posts_router",
]
