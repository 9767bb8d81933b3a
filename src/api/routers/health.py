"""Liveness endpoint for the design board API."""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Report that the server is up.

    Returns
    -------
    dict[str, str]
        A JSON object with a "status" key indicating the server's health status.

    """
    return {"status": "ok"}
