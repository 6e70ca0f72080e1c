from fastapi import APIRouter

from app.ai.credentials import get_available_models

router = APIRouter()


@router.get("/health", summary="Health Check", description="Check the health status of the application.")
async def health_check():
    available = sum(1 for model in get_available_models() if model["available"])
    return {"status": "healthy", "ai_models_available": available}
