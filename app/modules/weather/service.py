import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import requests

from app.config import settings
from app.core.exceptions import UpstreamError
from app.modules.weather.schemas import WeatherForecast

logger = logging.getLogger(__name__)

HOURLY_FIELDS = "temperature_2m,precipitation_probability,weathercode,windspeed_10m"
RAIN_WARNING_THRESHOLD = 50

BEYOND_HORIZON = "beyond_horizon"
UNAVAILABLE = "unavailable"


def describe_weather_code(code: Optional[int]) -> str:
    """Short description of a WMO weather interpretation code"""
    if code is None:
        return "n/a"
    if code == 0:
        return "Clear sky"
    if code <= 3:
        return "Partly cloudy"
    if code <= 48:
        return "Fog"
    if code <= 67:
        return "Rain"
    if code <= 77:
        return "Snow"
    if code <= 82:
        return "Showers"
    if code <= 99:
        return "Thunderstorm"
    return "n/a"


def _utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _hourly_value(hourly: dict, field: str, index: int):
    values = hourly.get(field) or []
    if index >= len(values):
        return None
    return values[index]


class WeatherService:
    """Hourly forecast at the ride's start point for the hour the ride starts (local time)."""

    def __init__(self, api_url: Optional[str] = None, horizon_days: Optional[int] = None, timeout: Optional[float] = None):
        self.api_url = api_url or settings.weather_api_url
        self.horizon_days = horizon_days or settings.forecast_horizon_days
        self.timeout = timeout or settings.http_timeout_seconds

    def unavailable(self, message: str = "Forecast unavailable") -> WeatherForecast:
        return WeatherForecast(available=False, reason=UNAVAILABLE, message=message)

    def get_forecast(self, lat: float, lon: float, date_time: datetime, now: Optional[datetime] = None) -> WeatherForecast:
        """
        Rides beyond the forecast horizon are reported as such without calling the API.
        Raises UpstreamError when the API fails or does not cover the ride hour.
        """
        ride_time = _utc(date_time)
        now = _utc(now) if now else datetime.now(timezone.utc)

        days_until_ride = (ride_time - now).total_seconds() / 86400
        if days_until_ride > self.horizon_days:
            return WeatherForecast(
                available=False,
                reason=BEYOND_HORIZON,
                message=f"Forecasts are only available up to {self.horizon_days} days ahead",
            )

        # The local date can differ from the UTC date by one day either way
        start_date = (ride_time - timedelta(days=1)).date()
        end_date = min((ride_time + timedelta(days=1)).date(), (now + timedelta(days=self.horizon_days - 1)).date())
        params = {
            "latitude": lat,
            "longitude": lon,
            "hourly": HOURLY_FIELDS,
            "start_date": start_date.isoformat(),
            "end_date": max(start_date, end_date).isoformat(),
            "timezone": "auto",
        }
        try:
            response = requests.get(self.api_url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Weather API request failed: {e}")
            raise UpstreamError("Weather service unreachable")
        if not response.ok:
            logger.warning(f"Weather API returned {response.status_code}: {response.text[:200]}")
            raise UpstreamError(f"Weather service error (HTTP {response.status_code})")
        try:
            data = response.json()
        except ValueError:
            raise UpstreamError("Weather service returned an invalid response")

        offset = timedelta(seconds=data.get("utc_offset_seconds") or 0)
        local_time = ride_time + offset
        hour_key = local_time.strftime("%Y-%m-%dT%H:00")
        hourly = data.get("hourly") or {}
        times = hourly.get("time") or []
        if hour_key not in times:
            raise UpstreamError("Forecast does not cover the ride time")
        index = times.index(hour_key)

        temperature = _hourly_value(hourly, "temperature_2m", index)
        if temperature is None:
            raise UpstreamError("Forecast does not cover the ride time")
        weather_code = _hourly_value(hourly, "weathercode", index)
        precipitation = _hourly_value(hourly, "precipitation_probability", index) or 0
        wind_speed = _hourly_value(hourly, "windspeed_10m", index)

        return WeatherForecast(
            available=True,
            time=ride_time,
            temperature_c=round(temperature),
            precipitation_probability=round(precipitation),
            weather_code=weather_code,
            description=describe_weather_code(weather_code),
            wind_speed_kmh=round(wind_speed) if wind_speed is not None else None,
            rain_warning=precipitation > RAIN_WARNING_THRESHOLD,
        )
