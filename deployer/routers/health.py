"""Health check endpoint."""

from fastapi import APIRouter

from deployer.schemas.health import HealthResponse

router = APIRouter()


@router.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    """Report that the application is up and accepting webhooks."""
    return HealthResponse(status="ok")
