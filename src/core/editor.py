"""Headless diagram editor session.

The editor keeps a local canvas (nodes and edges) in sync with the
architecture service through an :class:`~core.client.ArchitectureClient`.
Dropping a component or connecting two nodes walks a small workflow::

    drop_component -> [choose_subtype] -> choose_name -> component created
    connect -> [choose_link_type] -> link created

Service failures never raise out of the workflow methods; they are reported
as toast notifications instead, the way an interactive editor would show
them.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

import httpx

from core.catalog import COMPONENTS_WITH_SUBTYPES, ComponentType, LinkType
from core.client import APIClientError
from core.schemas.diagram import CanvasPosition, HeuristicProfile

if TYPE_CHECKING:
    from core.client import ArchitectureClient
    from core.schemas.diagram import Architecture, Component, Link

logger = logging.getLogger(__name__)

DEFAULT_ARCHITECTURE_NAME = "Untitled Architecture"
DEFAULT_RENAME_DEBOUNCE = 1.0  # seconds
TEMP_EDGE_LABEL = "Connecting..."

_SERVICE_ERRORS = (APIClientError, httpx.HTTPError)


def _millis() -> int:
    return int(time.time() * 1000)


def _edge_label(link_type: LinkType | str) -> str:
    return str(link_type).replace("_", " ")


class WorkflowStep(StrEnum):
    """Which confirmation the editor is waiting for."""

    IDLE = "idle"
    CHOOSE_SUBTYPE = "choose_subtype"
    CHOOSE_NAME = "choose_name"
    CHOOSE_LINK_TYPE = "choose_link_type"


class ToastLevel(StrEnum):
    """Severity of a toast notification."""

    SUCCESS = "success"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Toast:
    message: str
    level: ToastLevel = ToastLevel.INFO


@dataclass
class Node:
    """A component drawn on the canvas."""

    id: str
    component_id: str
    label: str
    component_type: ComponentType
    position: CanvasPosition
    subtype: str | None = None
    heuristics: HeuristicProfile | None = None


@dataclass
class Edge:
    """A link drawn on the canvas; temporary edges have no ``link_id`` yet."""

    id: str
    source: str
    target: str
    label: str
    link_id: str | None = None
    link_type: LinkType | None = None
    heuristics: HeuristicProfile | None = None
    temp: bool = False


@dataclass
class PendingComponent:
    component_type: ComponentType
    position: CanvasPosition
    subtype: str | None = None
    subtypes: list[str] = field(default_factory=list)


@dataclass
class PendingConnection:
    source: Node
    target: Node
    temp_edge_id: str
    options: list[LinkType] = field(default_factory=list)


def node_id_for(component_id: str) -> str:
    """Return the canvas node ID of a component."""
    return f"node-{component_id}"


class DiagramEditor:
    """One user's editing session on one architecture.

    Parameters
    ----------
    client : ArchitectureClient
        Client for the architecture service.
    rename_debounce : float
        Seconds to wait after the last :meth:`rename` before persisting it.

    """

    def __init__(self, client: ArchitectureClient, rename_debounce: float = DEFAULT_RENAME_DEBOUNCE) -> None:
        self.client = client
        self.rename_debounce = rename_debounce

        self.architecture_id: str | None = None
        self.name: str = ""
        self.submitted = False
        self.nodes: dict[str, Node] = {}
        self.edges: dict[str, Edge] = {}

        self.step = WorkflowStep.IDLE
        self.pending_component: PendingComponent | None = None
        self.pending_connection: PendingConnection | None = None
        self.notifications: list[Toast] = []

        self._creating = False
        self._persisted_name: str | None = None
        self._rename_task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(cls, client: ArchitectureClient) -> DiagramEditor:
        """Create an editor using the configured ``rename_debounce_seconds``."""
        from api.config import get_settings  # noqa: PLC0415

        return cls(client, rename_debounce=get_settings().rename_debounce_seconds)

    # -- notifications -------------------------------------------------------

    @property
    def notification(self) -> Toast | None:
        """The most recent toast, if any."""
        return self.notifications[-1] if self.notifications else None

    def notify(self, message: str, level: ToastLevel = ToastLevel.INFO) -> None:
        self.notifications.append(Toast(message, level))
        log = logger.warning if level in (ToastLevel.WARNING, ToastLevel.ERROR) else logger.debug
        log("[%s] %s", level.value, message)

    # -- architecture lifecycle ----------------------------------------------

    async def start(self, name: str | None = None) -> str | None:
        """Create the architecture backing this session, once.

        Returns the architecture ID, or ``None`` if creation failed.
        """
        if self._creating or self.architecture_id:
            return self.architecture_id

        self._creating = True
        try:
            chosen = (name or self.name or "").strip() or DEFAULT_ARCHITECTURE_NAME
            architecture = await self.client.create_architecture(chosen)
        except _SERVICE_ERRORS:
            logger.exception("Failed to create architecture")
            self.notify("Failed to create architecture", ToastLevel.ERROR)
            return None
        finally:
            self._creating = False

        self.architecture_id = architecture.id
        self.name = architecture.name
        self._persisted_name = architecture.name
        self.notify("Architecture created successfully", ToastLevel.SUCCESS)
        return self.architecture_id

    def _apply(self, architecture: Architecture) -> None:
        self.nodes = {}
        self.edges = {}
        for component in architecture.components:
            node = self._node_from(component, component.position or CanvasPosition())
            self.nodes[node.id] = node

        for link in architecture.links:
            source, target = node_id_for(link.source_id), node_id_for(link.target_id)
            if source not in self.nodes or target not in self.nodes:
                logger.warning("Skipping link %s with unresolved endpoints", link.id)
                continue
            self.edges[link.id] = self._edge_from(link, source, target)

        self.architecture_id = architecture.id
        self.name = architecture.name
        self.submitted = architecture.submitted
        self._persisted_name = architecture.name

    async def load(self, architecture_id: str) -> bool:
        """Replace the canvas with a stored architecture."""
        self._cancel_rename()
        try:
            architecture = await self.client.get_architecture(architecture_id)
        except _SERVICE_ERRORS:
            logger.exception("Failed to load architecture %s", architecture_id)
            self.notify("Failed to load architecture", ToastLevel.ERROR)
            return False
        self._apply(architecture)
        self.notify("Architecture loaded successfully", ToastLevel.SUCCESS)
        return True

    async def copy_and_load(self, source_id: str, name: str | None = None) -> bool:
        """Copy a stored architecture and continue editing the copy."""
        try:
            copied = await self.client.copy_architecture(source_id, name)
        except _SERVICE_ERRORS:
            logger.exception("Failed to copy architecture %s", source_id)
            self.notify("Failed to copy architecture", ToastLevel.ERROR)
            return False
        if not await self.load(copied.id):
            return False
        self.notify(f'Architecture "{copied.name}" loaded for editing', ToastLevel.SUCCESS)
        return True

    # -- components ----------------------------------------------------------

    @staticmethod
    def _node_from(component: Component, position: CanvasPosition) -> Node:
        return Node(
            id=node_id_for(component.id),
            component_id=component.id,
            label=component.name,
            component_type=component.type,
            position=position,
            subtype=component.subtype,
            heuristics=component.heuristics,
        )

    async def drop_component(
        self,
        component_type: ComponentType,
        position: CanvasPosition,
        subtype: str | None = None,
    ) -> WorkflowStep:
        """Start adding a component dropped at ``position``.

        Types with subtypes and no preselected subtype ask for a subtype
        first; everything else goes straight to naming.
        """
        self._abandon_pending()
        self.pending_component = PendingComponent(component_type, position, subtype)
        if component_type in COMPONENTS_WITH_SUBTYPES and not subtype:
            try:
                self.pending_component.subtypes = await self.client.subtypes(component_type)
            except _SERVICE_ERRORS:
                logger.exception("Failed to load subtypes for %s", component_type.value)
                self.notify("Failed to load subtypes", ToastLevel.ERROR)
                self.pending_component = None
                self.step = WorkflowStep.IDLE
                return self.step
            self.step = WorkflowStep.CHOOSE_SUBTYPE
        else:
            self.step = WorkflowStep.CHOOSE_NAME
        return self.step

    def choose_subtype(self, subtype: str) -> WorkflowStep:
        """Record the subtype of the pending component and ask for a name."""
        if self.pending_component is None or self.step != WorkflowStep.CHOOSE_SUBTYPE:
            return self.step
        self.pending_component.subtype = subtype
        self.step = WorkflowStep.CHOOSE_NAME
        return self.step

    def cancel_component(self) -> None:
        """Abandon the pending component."""
        self.pending_component = None
        if self.step in (WorkflowStep.CHOOSE_SUBTYPE, WorkflowStep.CHOOSE_NAME):
            self.step = WorkflowStep.IDLE

    async def choose_name(self, name: str | None = None) -> Node | None:
        """Create the pending component and place it on the canvas.

        A blank name defaults to ``"<TYPE>-<millis>"``.
        """
        pending = self.pending_component
        if pending is None or self.step != WorkflowStep.CHOOSE_NAME:
            return None
        self.pending_component = None
        self.step = WorkflowStep.IDLE

        properties: dict[str, Any] = {"subtype": pending.subtype} if pending.subtype else {}
        component_name = (name or "").strip() or f"{pending.component_type.value}-{_millis()}"
        try:
            component = await self.client.create_component(
                pending.component_type, component_name, properties, pending.position
            )
            node = self._node_from(component, pending.position)
            self.nodes[node.id] = node
            if self.architecture_id:
                await self.client.add_component(self.architecture_id, component.id)
        except APIClientError as exc:
            logger.exception("Failed to create component")
            self.notify(exc.message or "Failed to add component", ToastLevel.ERROR)
            return None
        except httpx.HTTPError:
            logger.exception("Failed to create component")
            self.notify("Failed to add component", ToastLevel.ERROR)
            return None

        label = f" ({pending.subtype.replace('_', ' ')})" if pending.subtype else ""
        self.notify(f"Component added successfully{label}", ToastLevel.SUCCESS)
        return node

    async def delete_node(self, node_id: str) -> bool:
        """Delete a component; edges touching it disappear with it."""
        node = self.nodes.get(node_id)
        if node is None:
            return False
        try:
            await self.client.delete_component(node.component_id)
        except _SERVICE_ERRORS:
            logger.exception("Failed to delete component %s", node.component_id)
            self.notify("Failed to delete component", ToastLevel.ERROR)
            return False
        del self.nodes[node_id]
        self.edges = {eid: e for eid, e in self.edges.items() if node_id not in (e.source, e.target)}
        self.notify("Component deleted", ToastLevel.SUCCESS)
        return True

    async def preview_subtype(self, component_type: ComponentType, subtype: str) -> HeuristicProfile | None:
        """Return the heuristics a component would get with ``subtype``."""
        try:
            return await self.client.subtype_heuristics(component_type, subtype)
        except _SERVICE_ERRORS:
            logger.exception("Failed to preview %s/%s", component_type.value, subtype)
            self.notify("Failed to load subtype heuristics", ToastLevel.ERROR)
            return None

    # -- connections ---------------------------------------------------------

    @staticmethod
    def _edge_from(link: Link, source: str, target: str) -> Edge:
        return Edge(
            id=link.id,
            source=source,
            target=target,
            label=_edge_label(link.type),
            link_id=link.id,
            link_type=link.type,
            heuristics=link.heuristics,
        )

    def _drop_edge(self, edge_id: str | None) -> None:
        if edge_id:
            self.edges.pop(edge_id, None)

    async def connect(self, source_node_id: str, target_node_id: str) -> WorkflowStep:
        """Connect two nodes, asking for a link type when several are allowed.

        A temporary edge is drawn immediately and replaced once the link is
        created, or removed if the connection is rejected.
        """
        self._abandon_pending()
        temp_id = f"edge-temp-{_millis()}"
        self.edges[temp_id] = Edge(
            id=temp_id, source=source_node_id, target=target_node_id, label=TEMP_EDGE_LABEL, temp=True
        )

        source = self.nodes.get(source_node_id)
        target = self.nodes.get(target_node_id)
        if source is None or target is None:
            self._drop_edge(temp_id)
            return self.step

        try:
            suggestions = await self.client.suggest_link_types(source.component_id, target.component_id)
        except _SERVICE_ERRORS:
            logger.exception("Failed to get link type suggestions")
            self.notify("Failed to get link type suggestions", ToastLevel.ERROR)
            self._drop_edge(temp_id)
            return self.step

        if not suggestions:
            self.notify("No valid link types for this connection", ToastLevel.ERROR)
            self._drop_edge(temp_id)
            return self.step

        if len(suggestions) > 1:
            self.pending_connection = PendingConnection(source, target, temp_id, suggestions)
            self.step = WorkflowStep.CHOOSE_LINK_TYPE
            return self.step

        await self._create_connection(source, target, suggestions[0], temp_id)
        return self.step

    async def choose_link_type(self, link_type: LinkType) -> Edge | None:
        """Create the pending connection with the chosen link type."""
        pending = self.pending_connection
        if pending is None or self.step != WorkflowStep.CHOOSE_LINK_TYPE:
            return None
        self.pending_connection = None
        self.step = WorkflowStep.IDLE
        return await self._create_connection(pending.source, pending.target, link_type, pending.temp_edge_id)

    def _abandon_pending(self) -> None:
        """Cancel whichever confirmation is waiting before a new workflow starts."""
        self.cancel_component()
        self.cancel_connection()

    def cancel_connection(self) -> None:
        """Abandon the pending connection and remove its temporary edge."""
        if self.pending_connection is not None:
            self._drop_edge(self.pending_connection.temp_edge_id)
        self.pending_connection = None
        if self.step == WorkflowStep.CHOOSE_LINK_TYPE:
            self.step = WorkflowStep.IDLE

    async def _create_connection(
        self, source: Node, target: Node, link_type: LinkType, temp_edge_id: str | None
    ) -> Edge | None:
        try:
            validation = await self.client.validate_link(source.component_id, target.component_id, link_type)
            if not validation.get("valid"):
                self.notify(validation.get("message") or "Invalid connection", ToastLevel.ERROR)
                self._drop_edge(temp_edge_id)
                return None

            link = await self.client.create_link(source.component_id, target.component_id, link_type)
            edge = self._edge_from(link, source.id, target.id)
            self._drop_edge(temp_edge_id)
            self.edges[edge.id] = edge

            if self.architecture_id:
                await self.client.add_link(self.architecture_id, link.id)
        except APIClientError as exc:
            logger.exception("Failed to create connection")
            self.notify(exc.message or "Failed to create connection", ToastLevel.ERROR)
            self._drop_edge(temp_edge_id)
            return None
        except httpx.HTTPError:
            logger.exception("Failed to create connection")
            self.notify("Failed to create connection", ToastLevel.ERROR)
            self._drop_edge(temp_edge_id)
            return None

        self.notify("Connection created successfully", ToastLevel.SUCCESS)
        return edge

    async def delete_edge(self, edge_id: str) -> bool:
        """Delete a link and its edge."""
        edge = self.edges.get(edge_id)
        if edge is None:
            return False
        if edge.link_id is None:
            self._drop_edge(edge_id)
            return True
        try:
            await self.client.delete_link(edge.link_id)
        except _SERVICE_ERRORS:
            logger.exception("Failed to delete link %s", edge.link_id)
            self.notify("Failed to delete connection", ToastLevel.ERROR)
            return False
        self._drop_edge(edge_id)
        self.notify("Connection deleted", ToastLevel.SUCCESS)
        return True

    # -- naming --------------------------------------------------------------

    def rename(self, name: str) -> None:
        """Change the architecture name and persist it after a quiet period.

        Each call restarts the debounce timer. Blank names and names equal
        to the last persisted (or just loaded) name are never sent.
        """
        self.name = name
        self._cancel_rename()
        if not self.architecture_id or not name.strip():
            return
        self._rename_task = asyncio.get_running_loop().create_task(self._debounced_rename())

    def _cancel_rename(self) -> None:
        if self._rename_task is not None and not self._rename_task.done():
            self._rename_task.cancel()
        self._rename_task = None

    async def _debounced_rename(self) -> None:
        await asyncio.sleep(self.rename_debounce)
        await self._persist_name()

    async def _persist_name(self) -> None:
        clean = self.name.strip()
        if not self.architecture_id or not clean or clean == self._persisted_name:
            return
        try:
            updated = await self.client.update_architecture(self.architecture_id, clean)
        except _SERVICE_ERRORS:
            logger.exception("Failed to update architecture name")
            self.notify("Failed to update architecture name", ToastLevel.ERROR)
            return
        self._persisted_name = updated.name
        self.name = updated.name
        self.notify("Architecture name updated", ToastLevel.SUCCESS)

    async def flush_name(self) -> None:
        """Persist a pending rename now instead of waiting for the timer."""
        task = self._rename_task
        self._rename_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._persist_name()

    async def close(self) -> None:
        """Flush any pending rename."""
        await self.flush_name()

    # -- evaluation and submission -------------------------------------------

    async def evaluate(self) -> dict[str, Any] | None:
        """Return the rule-based evaluation of the architecture."""
        if not self.architecture_id:
            self.notify("No architecture to evaluate", ToastLevel.ERROR)
            return None
        try:
            evaluation = await self.client.evaluate(self.architecture_id)
        except _SERVICE_ERRORS:
            logger.exception("Failed to evaluate architecture %s", self.architecture_id)
            self.notify("Failed to evaluate architecture", ToastLevel.ERROR)
            return None
        self.notify("Architecture evaluated successfully", ToastLevel.SUCCESS)
        return evaluation

    async def evaluate_with_ai(self, question: str) -> dict[str, Any] | None:
        """Return the AI evaluation of the architecture against ``question``."""
        if not self.architecture_id:
            self.notify("No architecture to evaluate", ToastLevel.ERROR)
            return None
        self.notify("Evaluating with AI...", ToastLevel.INFO)
        try:
            evaluation = await self.client.ai_evaluate(self.architecture_id, question)
        except _SERVICE_ERRORS:
            logger.exception("AI evaluation failed for %s", self.architecture_id)
            self.notify("Failed to evaluate architecture", ToastLevel.ERROR)
            return None
        self.notify("Architecture evaluated successfully with AI", ToastLevel.SUCCESS)
        return evaluation

    async def validate(self) -> dict[str, Any] | None:
        """Validate the architecture against the connection rules."""
        if not self.architecture_id:
            self.notify("No architecture to validate", ToastLevel.ERROR)
            return None
        try:
            validation = await self.client.validate(self.architecture_id)
        except _SERVICE_ERRORS:
            logger.exception("Failed to validate architecture %s", self.architecture_id)
            self.notify("Failed to validate architecture", ToastLevel.ERROR)
            return None
        if validation.get("valid"):
            self.notify("Architecture is valid!", ToastLevel.SUCCESS)
        else:
            count = len(validation.get("violations", []))
            self.notify(f"Architecture has {count} violations", ToastLevel.WARNING)
        return validation

    async def submit(self, user_id: str | None, question_id: str | None) -> bool:
        """Submit the architecture as ``user_id``'s answer to ``question_id``."""
        if not self.architecture_id:
            self.notify("No architecture to submit", ToastLevel.ERROR)
            return False
        if not user_id or not question_id:
            if user_id:
                message = "Question ID is required to submit"
            elif question_id:
                message = "User ID is required to submit"
            else:
                message = "User ID and Question ID are required to submit"
            self.notify(message, ToastLevel.ERROR)
            return False

        try:
            current = await self.client.get_architecture(self.architecture_id)
        except _SERVICE_ERRORS:
            logger.warning("Could not check submission state of %s, submitting anyway", self.architecture_id)
        else:
            if current.submitted:
                self.submitted = True
                self.notify("This architecture has already been submitted", ToastLevel.WARNING)
                return False

        await self.flush_name()
        try:
            await self.client.submit(self.architecture_id, user_id, question_id)
        except _SERVICE_ERRORS:
            logger.exception("Failed to submit architecture %s", self.architecture_id)
            self.notify("Failed to submit architecture", ToastLevel.ERROR)
            return False
        self.submitted = True
        self.notify("Architecture submitted successfully!", ToastLevel.SUCCESS)
        return True
