import logging
import requests
from app.config import settings
from app.core.exceptions import UpstreamError
from app.modules.tracks.gpx_parser import parse_gpx, summarize_track
from app.modules.tracks.schemas import TrackSummary

logger = logging.getLogger(__name__)


class TrackService:
    """Loads a stored GPX file by URL and summarizes its first track."""

    def __init__(self, timeout: float = None):
        self.timeout = timeout or settings.http_timeout_seconds

    def download(self, gpx_url: str) -> bytes:
        try:
            response = requests.get(gpx_url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"GPX download failed for {gpx_url}: {e}")
            raise UpstreamError("Could not download the GPX file")
        if not response.ok:
            logger.warning(f"GPX download returned {response.status_code} for {gpx_url}")
            raise UpstreamError(f"Could not download the GPX file (HTTP {response.status_code})")
        return response.content

    def fetch_track_summary(self, gpx_url: str) -> TrackSummary:
        """Download errors raise UpstreamError, malformed files GpxParseError; a file without a track is not an error."""
        return summarize_track(parse_gpx(self.download(gpx_url)))
