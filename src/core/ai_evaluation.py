"""AI evaluation of an architecture against a design question.

Claude is used when an API key is configured; otherwise the request is
forwarded to a remote evaluator that speaks the same JSON contract::

    request:  {"question": "...", "architecture": {"id", "name", "components", "links"}}
    response: {"heuristic_scores": {"<parameter>": <0-10>, ...}, "suggestion": "..."}
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import TYPE_CHECKING, Any

import anthropic
import httpx
from anthropic import RateLimitError as _RateLimitError
from pydantic import Field

from core.exceptions import AIEvaluationError, AIUnavailableError, DomainValidationError
from core.schemas.diagram import CamelModel

if TYPE_CHECKING:
    from core.schemas.diagram import Architecture

logger = logging.getLogger(__name__)

# Retry configuration for rate-limit (429) errors
MAX_RETRIES = 3
RETRY_BASE_DELAY = 2  # seconds

DEFAULT_MODEL = "claude-sonnet-4-20250514"

SYSTEM_PROMPT = (
    "You are a senior distributed-systems engineer grading a system design answer.\n"
    "You receive a design question and the candidate's architecture as JSON "
    "(components with types, subtypes and heuristics, and typed links between them).\n"
    "Score the architecture on each of these parameters from 0 to 10, higher is better:\n"
    "LATENCY, COST, AVAILABILITY, CONSISTENCY, SECURITY, DURABILITY, SCALABILITY, "
    "THROUGHPUT, MAINTAINABILITY, ENERGY_EFFICIENCY.\n"
    "Judge how well the architecture answers the question, not the components in isolation.\n"
    "Reply with a single JSON object and nothing else:\n"
    '{"heuristic_scores": {"LATENCY": 7.5, ...}, "suggestion": "one paragraph of concrete advice"}'
)

_FENCE_RE = re.compile(r"^```(?:json)?\s*|\s*```$")


class AIEvaluation(CamelModel):
    """AI result in the shape of a rule-based evaluation panel."""

    overall_score: float
    parameter_scores: dict[str, float] = Field(default_factory=dict)
    insights: list[str] = Field(default_factory=list)
    component_count: int = 0
    link_count: int = 0
    valid: bool = True
    is_ai_mode: bool = True


def architecture_payload(architecture: Architecture) -> dict[str, Any]:
    """Return the architecture fields sent to the evaluator."""
    data = architecture.model_dump(mode="json", by_alias=True)
    return {key: data[key] for key in ("id", "name", "components", "links")}


def transform_result(raw: dict[str, Any], architecture: Architecture) -> AIEvaluation:
    """Turn a raw evaluator response into an :class:`AIEvaluation`.

    The overall score is the mean of the heuristic scores (0 when there are
    none); the suggestion, if any, becomes the only insight.
    """
    scores: dict[str, float] = {}
    for name, value in (raw.get("heuristic_scores") or {}).items():
        try:
            scores[str(name)] = float(value)
        except (TypeError, ValueError):
            logger.warning("Ignoring non-numeric AI score %s=%r", name, value)

    overall = sum(scores.values()) / len(scores) if scores else 0.0
    suggestion = raw.get("suggestion")
    return AIEvaluation(
        overall_score=round(overall, 2),
        parameter_scores=scores,
        insights=[str(suggestion)] if suggestion else [],
        component_count=len(architecture.components),
        link_count=len(architecture.links),
    )


def parse_model_reply(text: str) -> dict[str, Any]:
    """Extract the JSON object from a model reply, tolerating code fences."""
    cleaned = _FENCE_RE.sub("", text.strip())
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start == -1 or end < start:
        msg = "AI evaluator reply did not contain a JSON object"
        raise AIEvaluationError(msg)
    try:
        parsed = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as exc:
        msg = f"AI evaluator reply was not valid JSON: {exc}"
        raise AIEvaluationError(msg) from exc
    if not isinstance(parsed, dict):
        msg = "AI evaluator reply was not a JSON object"
        raise AIEvaluationError(msg)
    return parsed


async def evaluate_with_claude(api_key: str, question: str, architecture: Architecture) -> dict[str, Any]:
    """Ask Claude to score an architecture.

    Parameters
    ----------
    api_key : str
        Anthropic Claude API key.
    question : str
        The design question the architecture answers.
    architecture : Architecture
        The architecture to score.

    Returns
    -------
    dict[str, Any]
        The raw ``{"heuristic_scores", "suggestion"}`` result.

    Raises
    ------
    AIEvaluationError
        If the API call fails, rate limiting persists or the reply is unusable.

    """
    user_content = (
        f"## Question\n{question}\n\n"
        f"## Architecture\n```json\n{json.dumps(architecture_payload(architecture), indent=2)}\n```"
    )

    client = anthropic.AsyncAnthropic(api_key=api_key)
    last_exc: Exception | None = None

    for attempt in range(MAX_RETRIES):
        try:
            response = await client.messages.create(
                model=DEFAULT_MODEL,
                max_tokens=2048,
                system=SYSTEM_PROMPT,
                messages=[{"role": "user", "content": user_content}],
            )
            text = response.content[0].text
            logger.info("Claude evaluated architecture %s (%d chars)", architecture.id, len(text))
            return parse_model_reply(text)
        except _RateLimitError as exc:
            last_exc = exc
            delay = RETRY_BASE_DELAY * (2 ** attempt)
            logger.warning(
                "Rate limited (attempt %d/%d) evaluating architecture %s, retrying in %ds",
                attempt + 1, MAX_RETRIES, architecture.id, delay,
            )
            if attempt < MAX_RETRIES - 1:
                await asyncio.sleep(delay)
        except AIEvaluationError:
            raise
        except Exception as exc:
            logger.exception("Claude API call failed for architecture %s", architecture.id)
            msg = f"AI evaluation failed: {exc}"
            raise AIEvaluationError(msg) from exc

    msg = "Rate limit exceeded. Please wait a minute before trying again."
    raise AIEvaluationError(msg) from last_exc


async def evaluate_remote(
    url: str,
    question: str,
    architecture: Architecture,
    timeout: float = 60.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, Any]:
    """POST the architecture to a remote evaluator and return its JSON reply."""
    payload = {"question": question, "architecture": architecture_payload(architecture)}
    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.post(url, json=payload)
            response.raise_for_status()
            data = response.json()
    except httpx.HTTPStatusError as exc:
        logger.exception("Remote evaluator returned %s for architecture %s", exc.response.status_code, architecture.id)
        msg = f"AI evaluation failed: {exc.response.status_code} {exc.response.reason_phrase}"
        raise AIEvaluationError(msg) from exc
    except (httpx.HTTPError, ValueError) as exc:
        logger.exception("Remote evaluator call failed for architecture %s", architecture.id)
        msg = f"AI evaluation failed: {exc}"
        raise AIEvaluationError(msg) from exc

    if not isinstance(data, dict):
        msg = "AI evaluator returned an unexpected payload"
        raise AIEvaluationError(msg)
    return data


async def evaluate_with_ai(
    question: str,
    architecture: Architecture,
    *,
    claude_api_key: str = "",
    evaluator_url: str = "",
    timeout: float = 60.0,
) -> AIEvaluation:
    """Score an architecture with whichever AI backend is configured.

    Raises
    ------
    AIUnavailableError
        If neither a Claude API key nor an evaluator URL is configured.
    AIEvaluationError
        If the configured backend fails.

    """
    if not question or not question.strip():
        msg = "A question is required for AI evaluation"
        raise DomainValidationError(msg)

    if claude_api_key:
        raw = await evaluate_with_claude(claude_api_key, question, architecture)
    elif evaluator_url:
        raw = await evaluate_remote(evaluator_url, question, architecture, timeout=timeout)
    else:
        msg = "AI evaluation is not configured"
        raise AIUnavailableError(msg)
    return transform_result(raw, architecture)
