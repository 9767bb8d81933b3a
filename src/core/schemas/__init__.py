"""Module containing the schemas for the design board package."""

from core.schemas.diagram import Architecture, CamelModel, CanvasPosition, Component, HeuristicProfile, Link
from core.schemas.forum import Answer, Question, QuestionAuthor, QuestionPublic, User, UserPublic

__all__ = [
    "Answer",
    "Architecture",
    "CamelModel",
    "CanvasPosition",
    "Component",
    "HeuristicProfile",
    "Link",
    "Question",
    "QuestionAuthor",
    "QuestionPublic",
    "User",
    "UserPublic",
]
