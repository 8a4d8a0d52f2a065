"""Health check endpoint."""

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(request: Request) -> dict:
    cache = request.app.state.cache
    return {
        "success": True,
        "data": {
            "status": "healthy",
            "version": request.app.state.settings.app_version,
            "cacheEntries": len(cache),
            "flightsConfigured": bool(request.app.state.settings.serpapi_key),
        },
        "requestId": request.state.request_id,
    }
