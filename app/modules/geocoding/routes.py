from fastapi import APIRouter, Depends, Query, Request
from app.config import settings
from app.core.rate_limit import limiter
from app.modules.geocoding.schemas import Place
from app.modules.geocoding.service import GeocodingService
from app.core.dependencies import get_current_user_id
from typing import List, Dict

router = APIRouter(prefix="/geocoding", tags=["geocoding"])


def get_geocoding_service() -> GeocodingService:
    return GeocodingService()


@router.get("/search", response_model=List[Place])
@limiter.limit(settings.geocoding_rate_limit)
async def search_places(
    request: Request,
    q: str = Query(..., max_length=200),
    limit: int = Query(5, ge=1, le=10),
    user_data: Dict = Depends(get_current_user_id),
    service: GeocodingService = Depends(get_geocoding_service)
):
    """Search places by name for the ride meeting point"""
    return service.search(q, limit=limit)
