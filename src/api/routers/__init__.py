"""Module containing the routers for the FastAPI application."""

from api.routers.architecture import router as architecture
from api.routers.auth import router as auth
from api.routers.components import router as components
from api.routers.health import router as health
from api.routers.links import router as links
from api.routers.questions import router as questions
from api.routers.users import router as users

__all__ = ["architecture", "auth", "components", "health", "links", "questions", "users"]
