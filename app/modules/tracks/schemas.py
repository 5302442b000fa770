from pydantic import BaseModel
from typing import Optional, List, Tuple


class TrackPoint(BaseModel):
    lat: float
    lon: float
    ele: Optional[float] = None


class Track(BaseModel):
    name: Optional[str] = None
    points: List[TrackPoint]


class BoundingBox(BaseModel):
    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float


class TrackSummary(BaseModel):
    found: bool = True
    name: Optional[str] = None
    distance_km: float = 0.0
    elevation_gain_m: float = 0.0
    elevation_loss_m: float = 0.0
    point_count: int = 0
    positions: List[Tuple[float, float]] = []
    bounds: Optional[BoundingBox] = None

    @classmethod
    def not_found(cls) -> "TrackSummary":
        return cls(found=False)
