"""Component endpoints of the architecture service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Response, status

from api.deps import ComponentServiceDep  # noqa: TC001
from api.models import (
    ComponentCreateRequest,
    ComponentUpdateRequest,
    CountResponse,
    ExistsResponse,
    SubtypesResponse,
)
from core.catalog import ComponentType, subtypes_for
from core.heuristics import heuristics_for
from core.schemas.diagram import Component, HeuristicProfile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/components", tags=["components"])


@router.get("")
async def list_components(components: ComponentServiceDep) -> list[Component]:
    return components.list_components()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_component(body: ComponentCreateRequest, components: ComponentServiceDep) -> Component:
    """Create a component; heuristics are derived from its type and subtype."""
    return components.create_component(body.type, body.name, body.properties, body.position)


@router.get("/types")
async def component_types() -> list[ComponentType]:
    return list(ComponentType)


@router.get("/count")
async def count_components(components: ComponentServiceDep) -> CountResponse:
    return CountResponse(count=components.count())


@router.get("/type/{component_type}")
async def components_by_type(component_type: ComponentType, components: ComponentServiceDep) -> list[Component]:
    return components.list_by_type(component_type)


@router.get("/subtypes/{component_type}")
async def component_subtypes(component_type: ComponentType) -> SubtypesResponse:
    """Return the subtypes selectable for a type (``["default"]`` if it has none)."""
    return SubtypesResponse(type=component_type, subtypes=subtypes_for(component_type))


@router.get("/heuristics/{component_type}/{subtype}")
async def subtype_heuristics(component_type: ComponentType, subtype: str) -> HeuristicProfile:
    """Preview the heuristics a component of this type and subtype would get."""
    return heuristics_for(component_type, subtype)


@router.get("/{component_id}")
async def get_component(component_id: str, components: ComponentServiceDep) -> Component:
    return components.get_component(component_id)


@router.put("/{component_id}")
async def update_component(
    component_id: str, body: ComponentUpdateRequest, components: ComponentServiceDep
) -> Component:
    """Replace a component; the ID is taken from the path, never the body."""
    return components.update_component(component_id, body.to_component(component_id))


@router.delete("/{component_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_component(component_id: str, components: ComponentServiceDep) -> Response:
    """Delete a component together with every link touching it."""
    components.delete_component(component_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{component_id}/exists")
async def component_exists(component_id: str, components: ComponentServiceDep) -> ExistsResponse:
    return ExistsResponse(exists=components.component_exists(component_id))
