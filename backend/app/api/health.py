from fastapi import APIRouter

from app.core.config import settings
from app.services.email import is_email_service_available

router = APIRouter(tags=["health"])


@router.get("/api/health")
def health_check():
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "email": is_email_service_available(),
    }
