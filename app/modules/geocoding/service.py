import logging
from typing import List, Optional

import requests

from app.config import settings
from app.core.exceptions import UpstreamError
from app.modules.geocoding.schemas import Place

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3


class GeocodingService:
    """Place search for meeting points (Nominatim)"""

    def __init__(self, api_url: Optional[str] = None, user_agent: Optional[str] = None, timeout: Optional[float] = None):
        self.api_url = api_url or settings.geocoding_api_url
        self.user_agent = user_agent or settings.geocoding_user_agent
        self.timeout = timeout or settings.http_timeout_seconds

    def search(self, query: str, limit: int = 5) -> List[Place]:
        """Ranked places matching the query; queries shorter than 3 characters return nothing"""
        query = (query or "").strip()
        if len(query) < MIN_QUERY_LENGTH:
            return []

        try:
            response = requests.get(
                self.api_url,
                params={"q": query, "format": "json", "limit": limit},
                headers={"User-Agent": self.user_agent, "Accept-Language": "en"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Geocoding request for '{query}' failed: {e}")
            raise UpstreamError("Geocoding service unreachable")
        if not response.ok:
            logger.warning(f"Geocoding returned {response.status_code} for '{query}'")
            raise UpstreamError(f"Geocoding service error (HTTP {response.status_code})")

        try:
            results = response.json()
        except ValueError:
            raise UpstreamError("Geocoding service returned an invalid response")

        places = []
        for item in results or []:
            try:
                places.append(Place(
                    display_name=item["display_name"],
                    lat=float(item["lat"]),
                    lon=float(item["lon"]),
                ))
            except (KeyError, TypeError, ValueError):
                logger.debug(f"Skipping malformed geocoding result: {item}")
        return places
