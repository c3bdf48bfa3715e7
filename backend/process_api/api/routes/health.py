"""Health Probe — liveness endpoint for container orchestration.

Invariants:
    - GET /health always returns 200 {"status": "ok"} while the process is up
    - Bypasses the request pipeline entirely: no deadline, no lifecycle events,
      no execution counter
"""

from fastapi import APIRouter, status

from process_api.schemas.process import HealthResponse

router = APIRouter(tags=["health"])


@router.get(
    "/health", response_model=HealthResponse, status_code=status.HTTP_200_OK,
)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return HealthResponse()
