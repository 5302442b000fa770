from supabase import Client
from postgrest.exceptions import APIError
from app.core.dependencies import get_user_group_ids
from app.core.exceptions import InternalError, NotFoundError, ValidationError
from app.modules.profiles.brands import compose_bike_model, get_brand_logo, parse_bike_model
from app.modules.profiles.schemas import ProfileUpdate, ProfileResponse
import logging

logger = logging.getLogger(__name__)


def _to_response(row: dict) -> ProfileResponse:
    brand, _ = parse_bike_model(row.get("bike_model"))
    return ProfileResponse(
        **row,
        brand=brand or None,
        brand_logo=get_brand_logo(row.get("bike_model")),
    )


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get profile by user ID"""
        result = self.supabase.table("profiles")\
            .select("id, username, avatar_url, bike_model, created_at")\
            .eq("id", user_id)\
            .limit(1)\
            .execute()
        if not result.data:
            raise NotFoundError("Profile not found")
        return _to_response(result.data[0])

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update the user's own profile; only the fields sent are changed"""
        update_dict = {}
        if profile_data.username is not None:
            username = profile_data.username.strip()
            if not username:
                raise ValidationError("Username is required")
            update_dict["username"] = username
        if profile_data.brand is not None or profile_data.model is not None:
            update_dict["bike_model"] = compose_bike_model(profile_data.brand, profile_data.model)
        elif profile_data.bike_model is not None:
            update_dict["bike_model"] = profile_data.bike_model.strip() or None
        if profile_data.avatar_url is not None:
            update_dict["avatar_url"] = profile_data.avatar_url.strip() or None

        if not update_dict:
            return self.get_profile(user_id)

        try:
            result = self.supabase.table("profiles")\
                .update(update_dict)\
                .eq("id", user_id)\
                .execute()
        except APIError as e:
            raise InternalError(f"Failed to update profile: {e.message}")
        if not result.data:
            raise NotFoundError("Profile not found")
        logger.info(f"Profile {user_id} updated: {sorted(update_dict)}")
        return _to_response(result.data[0])

    def can_view(self, viewer_id: str, user_id: str) -> bool:
        """Users see their own profile and those of people they share a group with"""
        if viewer_id == user_id:
            return True
        viewer_groups = set(get_user_group_ids(viewer_id, self.supabase))
        return bool(viewer_groups.intersection(get_user_group_ids(user_id, self.supabase)))
