from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from app.core.exceptions import NotFoundError, ValidationError
from app.database.supabase_client import get_supabase, get_service_supabase
from app.modules.rides.schemas import RideCreate, RideResponse, MonthCalendar
from app.modules.rides.service import RideService
from app.modules.notifications.service import NotificationService
from app.modules.tracks.schemas import TrackSummary
from app.modules.tracks.service import TrackService
from app.core.dependencies import get_current_user_id, check_ride_access
from supabase import Client
from datetime import datetime, timezone
from typing import List, Optional, Dict

router = APIRouter(prefix="/rides", tags=["rides"])


def get_ride_service(
    supabase: Client = Depends(get_supabase),
    service_supabase: Client = Depends(get_service_supabase)
) -> RideService:
    return RideService(supabase, notifications=NotificationService(service_supabase))


def get_track_service() -> TrackService:
    return TrackService()


@router.post("", response_model=RideResponse, status_code=201)
async def create_ride(
    group_id: str = Form(...),
    title: str = Form(..., min_length=1, max_length=200),
    date_time: datetime = Form(...),
    start_lat: float = Form(..., ge=-90, le=90),
    start_lon: float = Form(..., ge=-180, le=180),
    description: Optional[str] = Form(None),
    meeting_point_name: Optional[str] = Form(None),
    gpx_file: Optional[UploadFile] = File(None),
    user_data: Dict = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service)
):
    """
    Create a ride in one of the user's groups.
    An optional GPX track is validated and stored in the gpx-files bucket;
    the group's other members are notified.
    """
    gpx_filename = None
    gpx_content = None
    if gpx_file is not None and gpx_file.filename:
        if not gpx_file.filename.lower().endswith(".gpx"):
            raise ValidationError("Only GPX files are accepted")
        gpx_filename = gpx_file.filename
        gpx_content = await gpx_file.read()

    ride_data = RideCreate(
        group_id=group_id,
        title=title,
        description=description,
        date_time=date_time,
        start_lat=start_lat,
        start_lon=start_lon,
        meeting_point_name=meeting_point_name,
    )
    return service.create_ride(ride_data, user_data["id"], gpx_filename=gpx_filename, gpx_content=gpx_content)


@router.get("", response_model=List[RideResponse])
async def list_rides(
    upcoming: bool = True,
    group_id: Optional[str] = None,
    user_data: Dict = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service)
):
    """Rides of the user's groups, soonest first"""
    start = datetime.now(timezone.utc) if upcoming else None
    return service.list_rides(user_data["id"], start=start, group_id=group_id)


@router.get("/calendar", response_model=MonthCalendar)
async def ride_calendar(
    year: int = Query(..., ge=1970, le=9999),
    month: int = Query(..., ge=1, le=12),
    user_data: Dict = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service)
):
    """Month view (Monday-first weeks) of the user's rides"""
    return service.get_month_calendar(user_data["id"], year, month)


@router.get("/{ride_id}", response_model=RideResponse)
async def get_ride(
    ride_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service),
    supabase: Client = Depends(get_supabase)
):
    """Get ride by ID (only for members of the ride's group)"""
    check_ride_access(ride_id, user_data["id"], supabase)
    return service.get_ride(ride_id)


@router.delete("/{ride_id}", status_code=204)
async def delete_ride(
    ride_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service)
):
    """Delete ride with its participants and GPX file (creator only)"""
    service.delete_ride(ride_id, user_data["id"])
    return None


@router.delete("/{ride_id}/gpx", response_model=RideResponse)
async def remove_gpx(
    ride_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: RideService = Depends(get_ride_service)
):
    """Remove the GPX track from a ride (creator only)"""
    return service.remove_gpx(ride_id, user_data["id"])


@router.get("/{ride_id}/track", response_model=TrackSummary)
async def get_ride_track(
    ride_id: str,
    user_data: Dict = Depends(get_current_user_id),
    tracks: TrackService = Depends(get_track_service),
    supabase: Client = Depends(get_supabase)
):
    """Distance, elevation gain/loss and polyline of the ride's GPX track (found=false when the file has no track)"""
    ride = check_ride_access(ride_id, user_data["id"], supabase)
    if not ride.get("gpx_url"):
        raise NotFoundError("This ride has no GPX track")
    return tracks.fetch_track_summary(ride["gpx_url"])
