from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class WeatherForecast(BaseModel):
    available: bool
    reason: Optional[str] = None  # "beyond_horizon" | "unavailable" when not available
    message: Optional[str] = None
    time: Optional[datetime] = None
    temperature_c: Optional[int] = None
    precipitation_probability: Optional[int] = None
    weather_code: Optional[int] = None
    description: Optional[str] = None
    wind_speed_kmh: Optional[int] = None
    rain_warning: bool = False
