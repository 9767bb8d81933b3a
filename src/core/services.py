"""Component, link and architecture services over a document store."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Any

from pydantic import Field

from core import rules, scoring
from core.catalog import ComponentType, LinkType, normalize_subtype
from core.exceptions import DomainValidationError, InvalidConnectionError, NotFoundError
from core.heuristics import default_heuristics_for_link, heuristics_for
from core.schemas.diagram import Architecture, CamelModel, CanvasPosition, Component, HeuristicProfile, Link

if TYPE_CHECKING:
    from storage.base import DocumentStorage

logger = logging.getLogger(__name__)

COMPONENTS = "components"
LINKS = "links"
ARCHITECTURES = "architectures"

DEFAULT_ARCHITECTURE_NAME = "My Architecture"


def new_id() -> str:
    """Return a fresh random identifier."""
    return str(uuid.uuid4())


class LinkValidation(CamelModel):
    """Result of checking a prospective link."""

    valid: bool
    message: str


class ConnectionStats(CamelModel):
    """Number of links entering and leaving a component."""

    incoming_links: int
    outgoing_links: int
    total_connections: int = Field(default=0)


class VisualizationData(CamelModel):
    """Graph data used to draw a stored architecture."""

    architecture_id: str
    architecture_name: str
    components: list[Component] = Field(default_factory=list)
    links: list[Link] = Field(default_factory=list)


class ComponentService:
    """Create, read, update and delete components."""

    def __init__(self, storage: DocumentStorage) -> None:
        self.storage = storage

    def _save(self, component: Component) -> Component:
        self.storage.put(COMPONENTS, component.id, component.model_dump(mode="json", by_alias=True))
        return component

    def create_component(
        self,
        component_type: ComponentType,
        name: str | None,
        properties: dict[str, Any] | None = None,
        position: CanvasPosition | None = None,
    ) -> Component:
        """Create a component with heuristics derived from its type and subtype.

        Parameters
        ----------
        component_type : ComponentType
            The component type.
        name : str | None
            Display name; blank names become ``"<TYPE>-<short id>"``.
        properties : dict[str, Any] | None
            Free-form properties; a ``subtype`` entry is normalised and used
            to refine the heuristics.
        position : CanvasPosition | None
            Optional canvas position.

        Returns
        -------
        Component
            The stored component.

        Raises
        ------
        DomainValidationError
            If the subtype is unknown for the component type.

        """
        component_id = new_id()
        props = dict(properties or {})
        subtype = normalize_subtype(component_type, props.get("subtype"))
        if subtype:
            props["subtype"] = subtype
        else:
            props.pop("subtype", None)

        clean_name = (name or "").strip() or f"{component_type.value}-{component_id[:8]}"
        component = Component(
            id=component_id,
            name=clean_name,
            type=component_type,
            heuristics=heuristics_for(component_type, subtype),
            properties=props,
            position=position,
        )
        logger.info("Created component id=%s type=%s name=%s", component.id, component.type.value, component.name)
        return self._save(component)

    def get_component(self, component_id: str) -> Component:
        """Return a component or raise :class:`NotFoundError`."""
        document = self.storage.get(COMPONENTS, component_id)
        if document is None:
            msg = f"Component not found: {component_id}"
            raise NotFoundError(msg)
        return Component.model_validate(document)

    def find_component(self, component_id: str) -> Component | None:
        """Return a component, or ``None`` if it does not exist."""
        document = self.storage.get(COMPONENTS, component_id)
        return Component.model_validate(document) if document is not None else None

    def list_components(self) -> list[Component]:
        """Return every stored component."""
        return [Component.model_validate(doc) for doc in self.storage.list(COMPONENTS)]

    def list_by_type(self, component_type: ComponentType) -> list[Component]:
        """Return the stored components of one type."""
        return [c for c in self.list_components() if c.type == component_type]

    def update_component(self, component_id: str, component: Component) -> Component:
        """Replace a stored component, keeping its ID.

        The subtype is normalised as on creation. Empty heuristics are derived
        from the type and subtype, and a blank name keeps the stored one.
        """
        existing = self.find_component(component_id)
        if existing is None:
            msg = f"Component not found: {component_id}"
            raise NotFoundError(msg)

        props = dict(component.properties)
        subtype = normalize_subtype(component.type, props.get("subtype"))
        if subtype:
            props["subtype"] = subtype
        else:
            props.pop("subtype", None)

        heuristics = component.heuristics if component.heuristics.scores else heuristics_for(component.type, subtype)
        updated = component.model_copy(
            update={
                "id": component_id,
                "name": component.name.strip() or existing.name,
                "properties": props,
                "heuristics": heuristics,
            }
        )
        logger.info("Updated component id=%s", component_id)
        return self._save(updated)

    def delete_component(self, component_id: str) -> None:
        """Delete a component and every link touching it."""
        if not self.storage.delete(COMPONENTS, component_id):
            msg = f"Component not found: {component_id}"
            raise NotFoundError(msg)
        for document in self.storage.list(LINKS):
            if component_id in (document.get("sourceId"), document.get("targetId")):
                self.storage.delete(LINKS, document["id"])
        logger.info("Deleted component id=%s", component_id)

    def component_exists(self, component_id: str) -> bool:
        """Return ``True`` if the component is stored."""
        return self.storage.exists(COMPONENTS, component_id)

    def count(self) -> int:
        """Return the number of stored components."""
        return self.storage.count(COMPONENTS)


class LinkService:
    """Create validated links between stored components."""

    def __init__(self, storage: DocumentStorage, components: ComponentService) -> None:
        self.storage = storage
        self.components = components

    def _save(self, link: Link) -> Link:
        self.storage.put(LINKS, link.id, link.model_dump(mode="json", by_alias=True))
        return link

    def create_link(self, source_id: str, target_id: str, link_type: LinkType) -> Link:
        """Create a link after checking it against the connection rules.

        Raises
        ------
        NotFoundError
            If either component does not exist.
        InvalidConnectionError
            If the rules do not allow the connection.

        """
        source = self.components.find_component(source_id)
        if source is None:
            msg = f"Source component not found: {source_id}"
            raise NotFoundError(msg)
        target = self.components.find_component(target_id)
        if target is None:
            msg = f"Target component not found: {target_id}"
            raise NotFoundError(msg)

        if not rules.validate_connection(source, target, link_type):
            msg = (
                f"Invalid connection: {source.name} ({source.type.value}) -> "
                f"{target.name} ({target.type.value}) via {link_type.value}. Check connection rules."
            )
            raise InvalidConnectionError(msg)

        link = Link(
            id=new_id(),
            source_id=source.id,
            target_id=target.id,
            type=link_type,
            heuristics=default_heuristics_for_link(link_type),
        )
        logger.info("Created link id=%s %s -[%s]-> %s", link.id, source.id, link_type.value, target.id)
        return self._save(link)

    def validate_link(self, source_id: str, target_id: str, link_type: LinkType) -> LinkValidation:
        """Check a prospective link and explain why it is rejected."""
        source = self.components.find_component(source_id)
        if source is None:
            return LinkValidation(valid=False, message=f"Source component not found: {source_id}")
        target = self.components.find_component(target_id)
        if target is None:
            return LinkValidation(valid=False, message=f"Target component not found: {target_id}")

        if rules.validate_connection(source, target, link_type):
            return LinkValidation(valid=True, message="Connection is valid")

        allowed = rules.suggest_link_types(source, target)
        hint = (
            f" Allowed link types: {', '.join(t.value for t in allowed)}."
            if allowed
            else " These component types cannot be connected."
        )
        return LinkValidation(
            valid=False,
            message=(
                f"Connection not allowed: {source.name} ({source.type.value}) -> "
                f"{target.name} ({target.type.value}) via {link_type.value}.{hint}"
            ),
        )

    def suggest_link_types(self, source_id: str, target_id: str) -> list[LinkType]:
        """Return the link types allowed between two stored components."""
        source = self.components.get_component(source_id)
        target = self.components.get_component(target_id)
        return rules.suggest_link_types(source, target)

    def get_link(self, link_id: str) -> Link:
        """Return a link or raise :class:`NotFoundError`."""
        document = self.storage.get(LINKS, link_id)
        if document is None:
            msg = f"Link not found: {link_id}"
            raise NotFoundError(msg)
        return Link.model_validate(document)

    def list_links(self) -> list[Link]:
        """Return every stored link."""
        return [Link.model_validate(doc) for doc in self.storage.list(LINKS)]

    def delete_link(self, link_id: str) -> None:
        """Delete a link or raise :class:`NotFoundError`."""
        if not self.storage.delete(LINKS, link_id):
            msg = f"Link not found: {link_id}"
            raise NotFoundError(msg)
        logger.info("Deleted link id=%s", link_id)

    def links_for_component(self, component_id: str) -> list[Link]:
        """Return outgoing links followed by incoming links of a component."""
        links = self.list_links()
        outgoing = [link for link in links if link.source_id == component_id]
        incoming = [link for link in links if link.target_id == component_id]
        return outgoing + incoming

    def connection_stats(self, component_id: str) -> ConnectionStats:
        """Count the stored links entering and leaving a component."""
        incoming, outgoing = scoring.connection_counts(component_id, self.list_links())
        return ConnectionStats(incoming_links=incoming, outgoing_links=outgoing, total_connections=incoming + outgoing)

    def get_heuristics(self, link_id: str) -> HeuristicProfile:
        """Return the heuristic profile of a link."""
        return self.get_link(link_id).heuristics

    def update_heuristics(self, link_id: str, heuristics: HeuristicProfile) -> Link:
        """Replace the heuristic profile of a link."""
        link = self.get_link(link_id)
        link.heuristics = heuristics
        logger.info("Updated heuristics of link id=%s", link_id)
        return self._save(link)


class ArchitectureService:
    """Persist architectures and run validation and scoring on them."""

    def __init__(self, storage: DocumentStorage, components: ComponentService, links: LinkService) -> None:
        self.storage = storage
        self.components = components
        self.links = links

    def save(self, architecture: Architecture) -> Architecture:
        """Store an architecture as-is."""
        self.storage.put(ARCHITECTURES, architecture.id, architecture.model_dump(mode="json", by_alias=True))
        return architecture

    def create_architecture(self, name: str | None = None) -> Architecture:
        """Create an empty architecture; blank names get a default."""
        clean_name = (name or "").strip() or DEFAULT_ARCHITECTURE_NAME
        architecture = Architecture(id=new_id(), name=clean_name)
        logger.info("Created architecture id=%s name=%r", architecture.id, architecture.name)
        return self.save(architecture)

    def get_architecture(self, architecture_id: str) -> Architecture:
        """Return an architecture or raise :class:`NotFoundError`."""
        document = self.storage.get(ARCHITECTURES, architecture_id)
        if document is None:
            msg = f"Architecture not found: {architecture_id}"
            raise NotFoundError(msg)
        return Architecture.model_validate(document)

    def list_architectures(self) -> list[Architecture]:
        """Return every architecture, oldest first."""
        architectures = [Architecture.model_validate(doc) for doc in self.storage.list(ARCHITECTURES)]
        return sorted(architectures, key=lambda a: a.created_at)

    def rename(self, architecture_id: str, name: str | None) -> Architecture:
        """Rename an architecture; a blank name keeps the current one."""
        architecture = self.get_architecture(architecture_id)
        clean_name = (name or "").strip()
        if not clean_name:
            logger.warning("Ignoring blank name for architecture %s, keeping %r", architecture_id, architecture.name)
            return architecture
        logger.info("Renaming architecture %s from %r to %r", architecture_id, architecture.name, clean_name)
        architecture.name = clean_name
        architecture.touch()
        return self.save(architecture)

    def delete_architecture(self, architecture_id: str) -> None:
        """Delete an architecture or raise :class:`NotFoundError`."""
        if not self.storage.delete(ARCHITECTURES, architecture_id):
            msg = f"Architecture not found: {architecture_id}"
            raise NotFoundError(msg)
        logger.info("Deleted architecture id=%s", architecture_id)

    def add_component(self, architecture_id: str, component_id: str) -> Architecture:
        """Attach a stored component to an architecture."""
        architecture = self.get_architecture(architecture_id)
        component = self.components.get_component(component_id)
        architecture.add_component(component)
        return self.save(architecture)

    def add_link(self, architecture_id: str, link_id: str) -> Architecture:
        """Attach a stored link to an architecture."""
        architecture = self.get_architecture(architecture_id)
        link = self.links.get_link(link_id)
        architecture.add_link(link)
        return self.save(architecture)

    def copy_architecture(self, source_id: str, new_name: str | None = None) -> Architecture:
        """Deep-copy an architecture with fresh IDs.

        Components keep their heuristics, properties and canvas positions;
        links are remapped onto the copied components. Links whose endpoints
        are missing from the source are skipped. Ownership, question and
        submission state are not copied, so the result is a new draft.

        Parameters
        ----------
        source_id : str
            The architecture to copy.
        new_name : str | None
            Name of the copy; defaults to ``"<name> (Copy)"``.

        Returns
        -------
        Architecture
            The stored copy.

        """
        source = self.get_architecture(source_id)
        name = (new_name or "").strip() or f"{source.name} (Copy)"
        copy = Architecture(id=new_id(), name=name)

        remapped: dict[str, str] = {}
        for original in source.components:
            cloned = original.model_copy(deep=True, update={"id": new_id()})
            copy.components.append(cloned)
            remapped[original.id] = cloned.id

        for original_link in source.links:
            new_source = remapped.get(original_link.source_id)
            new_target = remapped.get(original_link.target_id)
            if new_source is None or new_target is None:
                logger.warning(
                    "Skipping link copy; missing remapped components. linkId=%s src=%s tgt=%s",
                    original_link.id, original_link.source_id, original_link.target_id,
                )
                continue
            copy.links.append(
                original_link.model_copy(
                    deep=True, update={"id": new_id(), "source_id": new_source, "target_id": new_target}
                )
            )

        logger.info("Copied architecture %s to %s (%r)", source_id, copy.id, copy.name)
        return self.save(copy)

    def submit_architecture(self, architecture_id: str, user_id: str, question_id: str) -> Architecture:
        """Mark an architecture as a user's answer to a question."""
        if not user_id or not question_id:
            msg = "userId and questionId are required"
            raise DomainValidationError(msg)
        architecture = self.get_architecture(architecture_id)
        architecture.user_id = user_id
        architecture.question_id = question_id
        architecture.submitted = True
        architecture.touch()
        saved = self.save(architecture)
        logger.info(
            "Submitted architecture %s (%r) for user=%s question=%s with %d components and %d links",
            saved.id, saved.name, user_id, question_id, len(saved.components), len(saved.links),
        )
        return saved

    def by_user(self, user_id: str) -> list[Architecture]:
        """Return the architectures submitted by a user."""
        return [a for a in self.list_architectures() if a.user_id == user_id]

    def by_question(self, question_id: str) -> list[Architecture]:
        """Return the architectures answering a question."""
        return [a for a in self.list_architectures() if a.question_id == question_id]

    def submitted(self) -> list[Architecture]:
        """Return every submitted architecture."""
        return [a for a in self.list_architectures() if a.submitted]

    def score(self, architecture_id: str) -> float:
        """Return the overall score of an architecture."""
        architecture = self.get_architecture(architecture_id)
        return scoring.aggregate(architecture.components, architecture.links)

    def evaluate(self, architecture_id: str) -> scoring.ArchitectureEvaluation:
        """Return the detailed evaluation of an architecture."""
        return scoring.evaluate(self.get_architecture(architecture_id))

    def validate(self, architecture_id: str) -> rules.ArchitectureValidationResult:
        """Validate every link of an architecture."""
        return rules.validate_architecture(self.get_architecture(architecture_id))

    def compare(self, first_id: str, second_id: str) -> scoring.ArchitectureComparison:
        """Compare two stored architectures."""
        return scoring.compare(self.get_architecture(first_id), self.get_architecture(second_id))

    def visualize(self, architecture_id: str) -> VisualizationData:
        """Return the graph data of an architecture."""
        architecture = self.get_architecture(architecture_id)
        return VisualizationData(
            architecture_id=architecture.id,
            architecture_name=architecture.name,
            components=architecture.components,
            links=architecture.links,
        )

    def stats(self) -> dict[str, int]:
        """Return total, submitted and draft counts."""
        architectures = self.list_architectures()
        submitted = sum(1 for a in architectures if a.submitted)
        return {"total": len(architectures), "submitted": submitted, "drafts": len(architectures) - submitted}
