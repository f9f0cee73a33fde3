"""Health check endpoint. No credential required; used for liveness probes."""

from fastapi import APIRouter

from tablefed.core.config import get_settings
from tablefed.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return ok status with version and backend."""
    settings = get_settings()
    return HealthResponse(version=settings.app_version, backend=settings.backend)
