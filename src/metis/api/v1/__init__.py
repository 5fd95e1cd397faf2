"""Version 1 API endpoints."""

from .endpoints import answer_posts_router, posts_router

__all__ = [
    "answer_posts_router",
    "posts_router",
]
