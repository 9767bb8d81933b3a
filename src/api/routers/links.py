"""Link endpoints of the architecture service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from api.deps import LinkServiceDep  # noqa: TC001
from api.models import LinkRequest, LinkSuggestionResponse, LinkValidationResponse
from core.catalog import LinkType
from core.exceptions import DomainValidationError
from core.heuristics import default_heuristics_for_link
from core.schemas.diagram import HeuristicProfile, Link
from core.services import ConnectionStats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/links", tags=["links"])


def _require_link_type(body: LinkRequest) -> LinkType:
    if body.link_type is None:
        msg = "linkType is required"
        raise DomainValidationError(msg)
    return body.link_type


@router.get("")
async def list_links(links: LinkServiceDep) -> list[Link]:
    return links.list_links()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_link(body: LinkRequest, links: LinkServiceDep) -> Link:
    """Create a link; rejected connections answer 400 with the rule violation."""
    return links.create_link(body.source_id, body.target_id, _require_link_type(body))


@router.post("/validate")
async def validate_link(body: LinkRequest, links: LinkServiceDep) -> LinkValidationResponse:
    validation = links.validate_link(body.source_id, body.target_id, _require_link_type(body))
    return LinkValidationResponse(valid=validation.valid, message=validation.message)


@router.post("/suggest")
async def suggest_link_types(body: LinkRequest, links: LinkServiceDep) -> LinkSuggestionResponse:
    """Return the link types the rules allow between two components."""
    return LinkSuggestionResponse(valid_link_types=links.suggest_link_types(body.source_id, body.target_id))


@router.get("/types")
async def link_types() -> list[LinkType]:
    return list(LinkType)


@router.get("/component/{component_id}")
async def links_for_component(component_id: str, links: LinkServiceDep) -> list[Link]:
    return links.links_for_component(component_id)


@router.get("/component/{component_id}/stats")
async def connection_stats(component_id: str, links: LinkServiceDep) -> ConnectionStats:
    return links.connection_stats(component_id)


@router.get("/heuristics/default/{link_type}")
async def default_link_heuristics(link_type: LinkType) -> HeuristicProfile:
    return default_heuristics_for_link(link_type)


@router.get("/{link_id}")
async def get_link(link_id: str, links: LinkServiceDep) -> Link:
    return links.get_link(link_id)


@router.delete("/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_link(link_id: str, links: LinkServiceDep) -> Response:
    links.delete_link(link_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{link_id}/heuristics")
async def get_link_heuristics(link_id: str, links: LinkServiceDep) -> HeuristicProfile:
    return links.get_heuristics(link_id)


@router.put("/{link_id}/heuristics")
async def update_link_heuristics(link_id: str, body: HeuristicProfile, links: LinkServiceDep) -> Link:
    return links.update_heuristics(link_id, body)
