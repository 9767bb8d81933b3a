"""Architecture endpoints: persistence, validation, scoring and submission."""

import logging

from fastapi import APIRouter, Request, Response, status

from api.deps import ArchitectureServiceDep, ForumServiceDep, SettingsDep
from api.middleware import AI_RATE_LIMIT, limiter
from api.models import (
    AIEvaluationRequest,
    ArchitectureHealthResponse,
    ArchitectureRequest,
    ComparisonRequest,
    ComponentReference,
    EvaluationRequest,
    LinkReference,
    ScoreResponse,
    SubmitRequest,
)
from core import rules
from core.ai_evaluation import AIEvaluation, evaluate_with_ai
from core.catalog import LinkType
from core.exceptions import DomainValidationError
from core.schemas.diagram import Architecture
from core.scoring import ArchitectureComparison, ArchitectureEvaluation
from core.services import VisualizationData

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/architecture", tags=["architecture"])


@router.get("")
async def list_architectures(architectures: ArchitectureServiceDep) -> list[Architecture]:
    return architectures.list_architectures()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_architecture(architectures: ArchitectureServiceDep, body: ArchitectureRequest | None = None) -> Architecture:
    """Create an empty architecture; a blank name becomes ``"My Architecture"``."""
    return architectures.create_architecture(body.name if body else None)


@router.get("/health")
async def architecture_health(architectures: ArchitectureServiceDep) -> ArchitectureHealthResponse:
    """Check that the document store answers and report how many architectures it holds."""
    stats = architectures.stats()
    return ArchitectureHealthResponse(
        healthy=True,
        message="Storage is healthy",
        architecture_count=stats["total"],
        submitted_count=stats["submitted"],
    )


@router.post("/evaluate")
async def evaluate_architecture(body: EvaluationRequest, architectures: ArchitectureServiceDep) -> ArchitectureEvaluation:
    return architectures.evaluate(body.architecture_id)


@router.post("/compare")
async def compare_architectures(body: ComparisonRequest, architectures: ArchitectureServiceDep) -> ArchitectureComparison:
    return architectures.compare(body.architecture1_id, body.architecture2_id)


@router.get("/submitted")
async def submitted_architectures(architectures: ArchitectureServiceDep) -> list[Architecture]:
    return architectures.submitted()


@router.get("/rules")
async def connection_rules() -> list[dict[str, str]]:
    return [rule.to_dict() for rule in rules.all_rules()]


@router.get("/rules/{link_type}")
async def connection_rules_for_link_type(link_type: LinkType) -> list[dict[str, str]]:
    return [rule.to_dict() for rule in rules.rules_for_link_type(link_type)]


@router.get("/user/{user_id}")
async def architectures_by_user(user_id: str, architectures: ArchitectureServiceDep) -> list[Architecture]:
    return architectures.by_user(user_id)


@router.get("/question/{question_id}")
async def architectures_by_question(question_id: str, architectures: ArchitectureServiceDep) -> list[Architecture]:
    return architectures.by_question(question_id)


@router.get("/visualize/{architecture_id}")
async def visualize_architecture(architecture_id: str, architectures: ArchitectureServiceDep) -> VisualizationData:
    return architectures.visualize(architecture_id)


@router.get("/{architecture_id}")
async def get_architecture(architecture_id: str, architectures: ArchitectureServiceDep) -> Architecture:
    return architectures.get_architecture(architecture_id)


@router.put("/{architecture_id}")
async def update_architecture(
    architecture_id: str,
    body: ArchitectureRequest,
    architectures: ArchitectureServiceDep,
) -> Architecture:
    """Rename an architecture; a blank name keeps the current one."""
    return architectures.rename(architecture_id, body.name)


@router.delete("/{architecture_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_architecture(architecture_id: str, architectures: ArchitectureServiceDep) -> Response:
    architectures.delete_architecture(architecture_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{architecture_id}/components")
async def add_component(
    architecture_id: str,
    body: ComponentReference,
    architectures: ArchitectureServiceDep,
) -> Architecture:
    return architectures.add_component(architecture_id, body.component_id)


@router.post("/{architecture_id}/links")
async def add_link(architecture_id: str, body: LinkReference, architectures: ArchitectureServiceDep) -> Architecture:
    return architectures.add_link(architecture_id, body.link_id)


@router.get("/{architecture_id}/score")
async def architecture_score(architecture_id: str, architectures: ArchitectureServiceDep) -> ScoreResponse:
    return ScoreResponse(architecture_id=architecture_id, score=architectures.score(architecture_id))


@router.post("/{architecture_id}/validate")
async def validate_architecture(
    architecture_id: str,
    architectures: ArchitectureServiceDep,
) -> rules.ArchitectureValidationResult:
    return architectures.validate(architecture_id)


@router.post("/{architecture_id}/submit")
async def submit_architecture(
    architecture_id: str,
    body: SubmitRequest,
    architectures: ArchitectureServiceDep,
) -> Architecture:
    """Record an architecture as a user's answer to a question."""
    return architectures.submit_architecture(architecture_id, body.user_id or "", body.question_id or "")


@router.post("/{architecture_id}/copy", status_code=status.HTTP_201_CREATED)
async def copy_architecture(
    architecture_id: str,
    architectures: ArchitectureServiceDep,
    body: ArchitectureRequest | None = None,
) -> Architecture:
    """Deep-copy an architecture so a published solution can be edited."""
    return architectures.copy_architecture(architecture_id, body.name if body else None)


@router.post("/{architecture_id}/ai-evaluate")
@limiter.limit(AI_RATE_LIMIT)
async def ai_evaluate_architecture(
    request: Request,
    architecture_id: str,
    body: AIEvaluationRequest,
    architectures: ArchitectureServiceDep,
    forum: ForumServiceDep,
    settings: SettingsDep,
) -> AIEvaluation:
    """Score an architecture with the configured AI evaluator.

    The question is either given as text or looked up from a forum question
    ID, in which case its title and description are used.
    """
    architecture = architectures.get_architecture(architecture_id)

    question = (body.question or "").strip()
    if not question and body.question_id:
        posted = forum.get_question(body.question_id)
        question = f"{posted.qtitle}\n\n{posted.qdes}"
    if not question:
        msg = "question or questionId is required"
        raise DomainValidationError(msg)

    return await evaluate_with_ai(
        question,
        architecture,
        claude_api_key=settings.claude_api_key,
        evaluator_url=settings.ai_evaluator_url,
        timeout=settings.ai_timeout_seconds,
    )
