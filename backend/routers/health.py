from __future__ import annotations

from fastapi import APIRouter

from backend.schemas.contact import HealthResponse


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    return HealthResponse()
