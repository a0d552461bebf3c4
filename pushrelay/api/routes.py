"""
Service status endpoints
"""

from fastapi import APIRouter, Request

from pushrelay.schemas import HealthResponse, MessageResponse
from pushrelay.scheduler import get_scheduler_status

router = APIRouter()

RUNNING_MESSAGE = "Notification Server is running"


@router.get("/", response_model=MessageResponse)
@router.get("/api", response_model=MessageResponse)
async def root():
    """Checks that the API is up"""
    return MessageResponse(message=RUNNING_MESSAGE)


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Server health"""
    scheduler_status = get_scheduler_status()
    
    return HealthResponse(
        status="healthy",
        app_name=request.app.state.settings.APP_NAME,
        scheduler="running" if scheduler_status["running"] else "stopped"
    )
