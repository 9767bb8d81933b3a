"""Pydantic models for the API request/response types."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from core.catalog import ComponentType, LinkType
from core.schemas.diagram import CamelModel, CanvasPosition, Component, HeuristicProfile
from core.schemas.forum import Question, QuestionPublic, UserPublic


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str


class MessageResponse(BaseModel):
    message: str


# -- forum -------------------------------------------------------------------


class SignupRequest(BaseModel):
    """Request model for ``POST /signup``; missing fields are reported as 400."""

    name: str | None = None
    email: str | None = None
    password: str | None = None


class SigninRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class SignupResponse(BaseModel):
    message: str
    user: UserPublic


class SignedInUser(BaseModel):
    id: str
    name: str | None = None
    email: str


class SigninResponse(BaseModel):
    message: str
    token: str
    user: SignedInUser


class QuestionCreatedResponse(BaseModel):
    message: str
    question: Question


class QuestionListResponse(BaseModel):
    questions: list[QuestionPublic]


class QuestionResponse(BaseModel):
    question: QuestionPublic


class UserResponse(BaseModel):
    user: UserPublic


# -- architecture service ----------------------------------------------------


class ComponentCreateRequest(CamelModel):
    """Request model for ``POST /api/components``.

    Attributes
    ----------
    type : ComponentType
        The component type.
    name : str | None
        Display name; a default is generated when blank.
    properties : dict[str, Any]
        Free-form properties, optionally holding ``subtype``.
    position : CanvasPosition | None
        Canvas position.

    """

    type: ComponentType
    name: str | None = None
    properties: dict[str, Any] = Field(default_factory=dict)
    position: CanvasPosition | None = None


class ComponentUpdateRequest(ComponentCreateRequest):
    """Request model for ``PUT /api/components/{id}``; the ID comes from the path.

    Attributes
    ----------
    heuristics : HeuristicProfile | None
        Replacement heuristics; derived from the type and subtype when omitted.

    """

    heuristics: HeuristicProfile | None = None

    def to_component(self, component_id: str) -> Component:
        """Build the replacement component stored under ``component_id``."""
        return Component(
            id=component_id,
            name=self.name or "",
            type=self.type,
            heuristics=self.heuristics or HeuristicProfile(),
            properties=self.properties,
            position=self.position,
        )


class LinkRequest(CamelModel):
    """Body of the link create, validate and suggest endpoints."""

    source_id: str
    target_id: str
    link_type: LinkType | None = None


class LinkValidationResponse(CamelModel):
    valid: bool
    message: str


class LinkSuggestionResponse(CamelModel):
    valid_link_types: list[LinkType]


class SubtypesResponse(CamelModel):
    type: ComponentType
    subtypes: list[str]


class CountResponse(CamelModel):
    count: int


class ExistsResponse(CamelModel):
    exists: bool


class ArchitectureRequest(CamelModel):
    name: str | None = None


class ComponentReference(CamelModel):
    component_id: str


class LinkReference(CamelModel):
    link_id: str


class EvaluationRequest(CamelModel):
    architecture_id: str


class ComparisonRequest(BaseModel):
    """Request model for ``POST /api/architecture/compare``."""

    architecture1_id: str = Field(alias="architecture1Id")
    architecture2_id: str = Field(alias="architecture2Id")

    model_config = ConfigDict(populate_by_name=True)


class SubmitRequest(CamelModel):
    user_id: str | None = None
    question_id: str | None = None


class AIEvaluationRequest(CamelModel):
    """Either a question text or the ID of a forum question to evaluate against."""

    question: str | None = None
    question_id: str | None = None


class ScoreResponse(CamelModel):
    architecture_id: str
    score: float


class ArchitectureHealthResponse(CamelModel):
    healthy: bool
    message: str
    architecture_count: int
    submitted_count: int = 0
