import re
import logging
from typing import Optional
from supabase import Client
from app.config import settings
from app.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)


class GpxStorage:
    """GPX files in a public Supabase Storage bucket, keyed {user_id}/{timestamp}-{filename}."""

    def __init__(self, supabase: Client, bucket_name: Optional[str] = None):
        self.bucket_name = bucket_name or settings.gpx_bucket
        self.bucket = supabase.storage.from_(self.bucket_name)

    def upload_file(self, file_content: bytes, key: str, content_type: str = "application/gpx+xml") -> str:
        """Upload file and return its public URL"""
        try:
            self.bucket.upload(key, file_content, {"content-type": content_type})
        except Exception as e:
            logger.error(f"Failed to upload GPX to storage: {str(e)}")
            raise UpstreamError("Could not store the GPX file")
        return self.bucket.get_public_url(key)

    def delete_file(self, key: str) -> bool:
        """Delete file from storage"""
        try:
            self.bucket.remove([key])
            return True
        except Exception as e:
            logger.error(f"Failed to delete {key} from storage: {str(e)}")
            return False

    def key_from_url(self, public_url: str) -> Optional[str]:
        # .../storage/v1/object/public/{bucket}/{key}
        match = re.search(rf"/{re.escape(self.bucket_name)}/(.+)$", public_url or "")
        if not match:
            return None
        return match.group(1).split("?", 1)[0]

    def delete_by_url(self, public_url: str) -> bool:
        key = self.key_from_url(public_url)
        if key is None:
            logger.warning(f"Cannot derive storage key from {public_url}")
            return False
        return self.delete_file(key)
