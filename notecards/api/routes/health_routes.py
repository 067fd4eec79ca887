from fastapi import APIRouter, Depends

from notecards.core.config import settings
from notecards.core.container import SessionManager, get_session_manager

router = APIRouter()


@router.get("/health")
async def health_check(manager: SessionManager = Depends(get_session_manager)):
    """
    Report service status.

    Returns:
        Dict: Status, environment and number of open sync sessions
    """
    return {"status": "healthy", "environment": settings.environment, "open_sessions": manager.open_sessions}
