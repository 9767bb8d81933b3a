"""Heuristic aggregation, bottleneck detection and architecture evaluation."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from statistics import fmean

from pydantic import Field, computed_field

from core.catalog import ComponentType, Parameter
from core.rules import validate_architecture
from core.schemas.diagram import Architecture, CamelModel, Component, Link

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS: dict[Parameter, float] = {
    Parameter.LATENCY: 1.2,
    Parameter.AVAILABILITY: 1.2,
    Parameter.SCALABILITY: 1.2,
    Parameter.THROUGHPUT: 1.0,
    Parameter.CONSISTENCY: 1.0,
    Parameter.DURABILITY: 1.0,
    Parameter.SECURITY: 1.0,
    Parameter.COST: 0.8,
    Parameter.MAINTAINABILITY: 0.8,
    Parameter.ENERGY_EFFICIENCY: 0.5,
}

COMPONENT_SHARE = 0.8
LINK_SHARE = 0.2

# Components with more connections than this start losing bottleneck score.
BOTTLENECK_DEGREE_THRESHOLD = 3
BOTTLENECK_SCORE_CUTOFF = 0.8
DEFAULT_SCALABILITY = 5.0


class ParameterWeights(CamelModel):
    """Relative weight of each parameter in the overall score."""

    weights: dict[Parameter, float] = Field(default_factory=lambda: dict(DEFAULT_WEIGHTS))

    def weight(self, parameter: Parameter) -> float:
        """Return the weight of ``parameter`` (1.0 when unlisted)."""
        return self.weights.get(parameter, 1.0)


class BottleneckInfo(CamelModel):
    """A component whose connection load is high for its scalability."""

    component_id: str
    component_name: str
    component_type: ComponentType
    bottleneck_score: float
    incoming_connections: int
    outgoing_connections: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_connections(self) -> int:
        """Incoming plus outgoing connections."""
        return self.incoming_connections + self.outgoing_connections


class ArchitectureEvaluation(CamelModel):
    """Detailed evaluation of one architecture."""

    architecture_id: str
    architecture_name: str
    overall_score: float
    component_count: int
    link_count: int
    parameter_scores: dict[Parameter, float]
    bottlenecks: list[BottleneckInfo]
    insights: list[str]
    valid: bool
    violations: list[str]
    warnings: list[str]


class ArchitectureComparison(CamelModel):
    """Side-by-side scores of two architectures."""

    arch1_id: str
    arch1_name: str
    arch1_score: float
    arch2_id: str
    arch2_name: str
    arch2_score: float
    arch1_parameters: dict[Parameter, float]
    arch2_parameters: dict[Parameter, float]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def score_difference(self) -> float:
        """``arch1_score - arch2_score``."""
        return round(self.arch1_score - self.arch2_score, 2)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def winner(self) -> str:
        """Name of the higher-scoring architecture, or ``"Tie"``."""
        if self.arch1_score > self.arch2_score:
            return self.arch1_name
        if self.arch2_score > self.arch1_score:
            return self.arch2_name
        return "Tie"


def _mean_scores(profiles: Iterable[Mapping[Parameter, float]]) -> dict[Parameter, float]:
    collected: dict[Parameter, list[float]] = {}
    for scores in profiles:
        for parameter, value in scores.items():
            collected.setdefault(parameter, []).append(float(value))
    return {parameter: fmean(values) for parameter, values in collected.items()}


def aggregate_by_parameter(components: list[Component], links: list[Link] | None = None) -> dict[Parameter, float]:
    """Average component scores per parameter, blending in link scores.

    Parameters
    ----------
    components : list[Component]
        Components whose heuristics are averaged.
    links : list[Link] | None
        Optional links; where a parameter is scored by both components and
        links the result is ``0.8 * component_mean + 0.2 * link_mean``.

    Returns
    -------
    dict[Parameter, float]
        Score per parameter, rounded to 2 decimals. Parameters that no
        component scores are omitted.

    """
    component_means = _mean_scores(component.heuristics.scores for component in components)
    link_means = _mean_scores(link.heuristics.scores for link in links or [])

    result: dict[Parameter, float] = {}
    for parameter in Parameter:
        if parameter not in component_means:
            continue
        value = component_means[parameter]
        if parameter in link_means:
            value = COMPONENT_SHARE * value + LINK_SHARE * link_means[parameter]
        result[parameter] = round(value, 2)
    return result


def aggregate(components: list[Component], links: list[Link], weights: ParameterWeights | None = None) -> float:
    """Return the weighted overall score of an architecture (0.0 when empty)."""
    weights = weights or ParameterWeights()
    parameter_scores = aggregate_by_parameter(components, links)
    if not parameter_scores:
        return 0.0
    total_weight = sum(weights.weight(parameter) for parameter in parameter_scores)
    if total_weight <= 0:
        return 0.0
    weighted = sum(weights.weight(parameter) * score for parameter, score in parameter_scores.items())
    return round(weighted / total_weight, 2)


def connection_counts(component_id: str, links: list[Link]) -> tuple[int, int]:
    """Return ``(incoming, outgoing)`` link counts of a component."""
    incoming = sum(1 for link in links if link.target_id == component_id)
    outgoing = sum(1 for link in links if link.source_id == component_id)
    return incoming, outgoing


def bottleneck_score(component: Component, links: list[Link]) -> float:
    """Return a 0-1 score where low values flag an overloaded component.

    Score is ``1 / (1 + excess * (1 - scalability / 10))`` where ``excess`` is
    the number of connections above :data:`BOTTLENECK_DEGREE_THRESHOLD`.
    """
    incoming, outgoing = connection_counts(component.id, links)
    excess = max(0, incoming + outgoing - BOTTLENECK_DEGREE_THRESHOLD)
    scalability = component.heuristics.score(Parameter.SCALABILITY, DEFAULT_SCALABILITY) or 0.0
    fragility = 1.0 - min(10.0, max(0.0, scalability)) / 10.0
    return round(1.0 / (1.0 + excess * fragility), 3)


def identify_bottlenecks(architecture: Architecture) -> list[BottleneckInfo]:
    """Return every component whose bottleneck score is below the cutoff."""
    bottlenecks = []
    for component in architecture.components:
        score = bottleneck_score(component, architecture.links)
        if score < BOTTLENECK_SCORE_CUTOFF:
            incoming, outgoing = connection_counts(component.id, architecture.links)
            bottlenecks.append(
                BottleneckInfo(
                    component_id=component.id,
                    component_name=component.name,
                    component_type=component.type,
                    bottleneck_score=score,
                    incoming_connections=incoming,
                    outgoing_connections=outgoing,
                )
            )
    return bottlenecks


def _band(parameter_scores: dict[Parameter, float], parameter: Parameter, low: float, high: float,
          low_msg: str, high_msg: str) -> str | None:
    if parameter not in parameter_scores:
        return None
    value = parameter_scores[parameter]
    if value < low:
        return low_msg
    if value >= high:
        return high_msg
    return None


def generate_insights(
    architecture: Architecture,
    overall_score: float,
    parameter_scores: dict[Parameter, float],
    bottlenecks: list[BottleneckInfo],
) -> list[str]:
    """Produce human-readable recommendations for an architecture.

    Each insight starts with a marker the UI uses to style it: ``✅``
    (strength), ``✓`` (good), ``⚠``/``❌`` (problem), ``💡`` (suggestion),
    ``💰`` (cost).
    """
    insights: list[str] = []

    if overall_score >= 8.0:
        insights.append("✅ Excellent architecture design with strong performance characteristics.")
    elif overall_score >= 6.5:
        insights.append("✓ Good architecture design. Consider optimizations for better performance.")
    elif overall_score >= 5.0:
        insights.append("⚠ Architecture is functional but has room for improvement.")
    else:
        insights.append("❌ Architecture needs significant improvements. Review component choices and connections.")

    component_count = len(architecture.components)
    if component_count == 0:
        insights.append("❌ Architecture has no components. Add components to build your system.")
    elif component_count == 1:
        insights.append("⚠ Architecture has only one component. Consider adding more components for scalability.")
    elif component_count > 15:
        insights.append(f"⚠ Architecture is complex with {component_count} components. Ensure maintainability.")

    link_count = len(architecture.links)
    if link_count == 0 and component_count > 1:
        insights.append("❌ Components are not connected. Add links to establish data flow.")
    elif link_count > 0 and component_count > 0:
        ratio = link_count / component_count
        if ratio < 1.0:
            insights.append("⚠ Architecture is under-connected. Consider adding more links for redundancy.")
        elif ratio > 4.0:
            insights.append("⚠ Architecture may be over-connected. Simplify if possible to reduce complexity.")

    bands = (
        _band(parameter_scores, Parameter.LATENCY, 5.0, 8.0,
              "⚠ Low latency score. Consider adding caching layers or using faster storage.",
              "✅ Excellent latency characteristics. System should be responsive."),
        _band(parameter_scores, Parameter.AVAILABILITY, 6.0, 8.5,
              "⚠ Low availability score. Add replication and redundancy for high availability.",
              "✅ Strong availability design. System should handle failures well."),
        _band(parameter_scores, Parameter.SCALABILITY, 6.0, 8.5,
              "⚠ Limited scalability. Consider using load balancers and horizontal scaling.",
              "✅ Highly scalable architecture. Can handle traffic growth effectively."),
        _band(parameter_scores, Parameter.COST, 5.0, 7.5,
              "💰 High cost architecture. Review component choices for cost optimization.",
              "✅ Cost-effective architecture design."),
    )
    insights.extend(text for text in bands if text)

    if bottlenecks:
        insights.append(f"⚠ Detected {len(bottlenecks)} potential bottleneck(s):")
        insights.extend(
            f"  • {b.component_name} ({b.component_type.value}) has {b.total_connections} connections. "
            "Consider load balancing or caching."
            for b in bottlenecks
        )

    types = {component.type for component in architecture.components}
    if ComponentType.DATABASE in types and ComponentType.CACHE not in types:
        insights.append("💡 Consider adding a cache layer to improve database performance.")
    if component_count > 3 and ComponentType.LOAD_BALANCER not in types:
        insights.append("💡 Consider adding a load balancer for better traffic distribution.")
    if {ComponentType.DATABASE, ComponentType.CACHE, ComponentType.QUEUE} <= types:
        insights.append("✅ Architecture includes database, cache, and queue - good for scalable systems.")

    return insights


def evaluate(architecture: Architecture, weights: ParameterWeights | None = None) -> ArchitectureEvaluation:
    """Score, validate and annotate an architecture.

    Parameters
    ----------
    architecture : Architecture
        The architecture to evaluate.
    weights : ParameterWeights | None
        Optional custom weights; defaults to :data:`DEFAULT_WEIGHTS`.

    Returns
    -------
    ArchitectureEvaluation
        Overall and per-parameter scores, bottlenecks, insights and the
        rule validation result.

    """
    overall = aggregate(architecture.components, architecture.links, weights)
    parameter_scores = aggregate_by_parameter(architecture.components, architecture.links)
    bottlenecks = identify_bottlenecks(architecture)
    insights = generate_insights(architecture, overall, parameter_scores, bottlenecks)
    validation = validate_architecture(architecture)

    logger.info(
        "Evaluated architecture %s: score=%.2f components=%d links=%d bottlenecks=%d",
        architecture.id, overall, len(architecture.components), len(architecture.links), len(bottlenecks),
    )
    return ArchitectureEvaluation(
        architecture_id=architecture.id,
        architecture_name=architecture.name,
        overall_score=overall,
        component_count=len(architecture.components),
        link_count=len(architecture.links),
        parameter_scores=parameter_scores,
        bottlenecks=bottlenecks,
        insights=insights,
        valid=validation.valid,
        violations=validation.violations,
        warnings=validation.warnings,
    )


def compare(first: Architecture, second: Architecture, weights: ParameterWeights | None = None) -> ArchitectureComparison:
    """Compare the scores of two architectures."""
    return ArchitectureComparison(
        arch1_id=first.id,
        arch1_name=first.name,
        arch1_score=aggregate(first.components, first.links, weights),
        arch2_id=second.id,
        arch2_name=second.name,
        arch2_score=aggregate(second.components, second.links, weights),
        arch1_parameters=aggregate_by_parameter(first.components, first.links),
        arch2_parameters=aggregate_by_parameter(second.components, second.links),
    )
