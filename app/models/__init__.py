"""Database models."""

from app.models.ai_messages import ai_messages
from app.models.base import metadata
from app.models.favorites import favorites
from app.models.subscriptions import subscriptions
from app.models.trips import trips
from app.models.users import users

__all__ = [
    "ai_messages",
    "favorites",
    "metadata",
    "subscriptions",
    "trips",
    "users",
]
