from fastapi import APIRouter, Depends, Query
from app.core.exceptions import UpstreamError
from app.database.supabase_client import get_supabase
from app.modules.rides.schemas import RideResponse
from app.modules.weather.schemas import WeatherForecast
from app.modules.weather.service import WeatherService
from app.core.dependencies import get_current_user_id, check_ride_access
from supabase import Client
from datetime import datetime
from typing import Dict
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/weather", tags=["weather"])


def get_weather_service() -> WeatherService:
    return WeatherService()


def _forecast_or_unavailable(service: WeatherService, lat: float, lon: float, date_time: datetime) -> WeatherForecast:
    try:
        return service.get_forecast(lat, lon, date_time)
    except UpstreamError as e:
        logger.warning(f"Forecast for ({lat}, {lon}) at {date_time} unavailable: {e.message}")
        return service.unavailable()


@router.get("/forecast", response_model=WeatherForecast)
async def get_forecast(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    date_time: datetime = Query(...),
    user_data: Dict = Depends(get_current_user_id),
    service: WeatherService = Depends(get_weather_service)
):
    """Forecast for a point at a given time"""
    return _forecast_or_unavailable(service, lat, lon, date_time)


@router.get("/rides/{ride_id}", response_model=WeatherForecast)
async def get_ride_forecast(
    ride_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: WeatherService = Depends(get_weather_service),
    supabase: Client = Depends(get_supabase)
):
    """Forecast at the ride's start point for its start hour"""
    ride = check_ride_access(ride_id, user_data["id"], supabase)
    return _forecast_or_unavailable(
        service,
        ride["start_lat"],
        ride["start_lon"],
        RideResponse(**ride).date_time,
    )
