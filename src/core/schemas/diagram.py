"""Pydantic models for components, links and architectures."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from core.catalog import ComponentType, LinkType, Parameter


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys.

    Fields are written in snake_case in Python and accepted in either
    spelling on input.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CanvasPosition(CamelModel):
    """Where a component sits on the editor canvas."""

    x: float = 0.0
    y: float = 0.0


class HeuristicProfile(CamelModel):
    """Per-parameter quality scores of a component or link.

    Attributes
    ----------
    scores : dict[Parameter, float]
        Score per parameter on a 0-10 scale.

    """

    scores: dict[Parameter, float] = Field(default_factory=dict)

    def score(self, parameter: Parameter, default: float | None = None) -> float | None:
        """Return the score for ``parameter`` or ``default`` when unscored."""
        return self.scores.get(parameter, default)


class Component(CamelModel):
    """An architecture component placed on a diagram.

    Attributes
    ----------
    id : str
        Unique identifier of the component.
    name : str
        Display name.
    type : ComponentType
        The component type.
    heuristics : HeuristicProfile
        Quality scores derived from the type and subtype.
    properties : dict[str, Any]
        Free-form properties; ``subtype`` is stored here.
    position : CanvasPosition | None
        Canvas position used to rebuild the diagram.

    """

    id: str
    name: str
    type: ComponentType
    heuristics: HeuristicProfile = Field(default_factory=HeuristicProfile)
    properties: dict[str, Any] = Field(default_factory=dict)
    position: CanvasPosition | None = None

    @property
    def subtype(self) -> str | None:
        """The subtype stored in ``properties``, if any."""
        value = self.properties.get("subtype")
        return str(value) if value else None


class Link(CamelModel):
    """A typed, directed connection between two components."""

    id: str
    source_id: str
    target_id: str
    type: LinkType
    heuristics: HeuristicProfile = Field(default_factory=HeuristicProfile)
    properties: dict[str, Any] = Field(default_factory=dict)


class Architecture(CamelModel):
    """A named diagram made of components and links.

    Attributes
    ----------
    id : str
        Unique identifier of the architecture.
    name : str
        Display name.
    components : list[Component]
        Components in insertion order.
    links : list[Link]
        Links in insertion order.
    user_id : str | None
        Author, set on submission.
    question_id : str | None
        The question this architecture answers, set on submission.
    created_at : datetime
        Creation time (UTC).
    updated_at : datetime
        Last modification time (UTC).
    submitted : bool
        Whether the architecture was submitted as an answer.

    """

    id: str
    name: str
    components: list[Component] = Field(default_factory=list)
    links: list[Link] = Field(default_factory=list)
    user_id: str | None = None
    question_id: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    submitted: bool = False

    def touch(self) -> None:
        """Refresh ``updated_at``."""
        self.updated_at = utc_now()

    def add_component(self, component: Component) -> None:
        """Append a component and refresh the modification time."""
        self.components.append(component)
        self.touch()

    def add_link(self, link: Link) -> None:
        """Append a link and refresh the modification time."""
        self.links.append(link)
        self.touch()

    def component_ids(self) -> set[str]:
        """Return the IDs of every component in the architecture."""
        return {component.id for component in self.components}
