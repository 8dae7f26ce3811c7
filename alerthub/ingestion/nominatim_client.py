"""
Nominatim reverse geocoding client for AlertHub

Resolves the country and municipality of a coordinate pair in a requested
language. One HTTP request per call; retrying is left to the caller.

API Documentation: https://nominatim.org/release-docs/latest/api/Reverse/
"""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from alerthub.core.config import settings
from alerthub.core.exceptions import GeocodingError
from alerthub.core.geo_utils import format_coordinate, is_valid_coordinate

logger = logging.getLogger(__name__)


def culture_language(culture: str) -> str:
    """Primary language subtag of a culture tag: 'el-GR' -> 'el'."""
    return culture.split("-")[0].lower()


@dataclass
class PlaceNameResult:
    """Country and municipality for a location in one culture."""
    country: str
    municipality: str
    culture: str


class NominatimClient:
    """
    Client for Nominatim reverse geocoding.

    Usage:
        with NominatimClient() as client:
            place = client.resolve(23.72, 37.98, "el-GR")

    The URL template takes {longitude}, {latitude} and {language}
    placeholders; see Settings.nominatim_url.
    """

    def __init__(
        self,
        url_template: Optional[str] = None,
        timeout: Optional[float] = None,
        user_agent: str = "AlertHub/1.0",
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize Nominatim client.

        Args:
            url_template: Reverse geocoding URL template
            timeout: HTTP request timeout in seconds
            user_agent: Default outbound User-Agent
            http_client: Preconfigured httpx client (e.g. with a mock transport)
        """
        self.url_template = url_template or settings.nominatim_url
        self.timeout = timeout or settings.geocoding_timeout_seconds
        self.user_agent = user_agent
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(timeout=self.timeout)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def build_url(self, longitude: float, latitude: float, culture: str) -> str:
        """Fill the URL template for a coordinate pair and culture."""
        return (
            self.url_template
            .replace("{longitude}", format_coordinate(longitude))
            .replace("{latitude}", format_coordinate(latitude))
            .replace("{language}", culture_language(culture))
        )

    def resolve(
        self,
        longitude: float,
        latitude: float,
        culture: str,
        user_agent: Optional[str] = None,
    ) -> PlaceNameResult:
        """
        Reverse geocode a location.

        Args:
            longitude: Longitude in decimal degrees
            latitude: Latitude in decimal degrees
            culture: Culture tag such as "en-US"; only the language is sent
            user_agent: Outbound User-Agent for this request

        Returns:
            PlaceNameResult tagged with the requested culture

        Raises:
            ValueError: If the coordinates are not valid
            GeocodingError: On transport failure, non-2xx status or a
                response without address.country / address.municipality
        """
        if not is_valid_coordinate(latitude, longitude):
            raise ValueError(f"Invalid coordinates: lat={latitude}, lon={longitude}")

        url = self.build_url(longitude, latitude, culture)
        logger.debug(f"Reverse geocoding url: {url}")

        try:
            response = self._client.get(
                url, headers={"User-Agent": user_agent or self.user_agent}
            )
        except httpx.HTTPError as e:
            raise GeocodingError(f"Request to geocoding provider failed: {e}") from e

        if not response.is_success:
            raise GeocodingError(
                f"HTTP Error: {response.status_code}", status_code=response.status_code
            )

        try:
            address = response.json()["address"]
            country = address["country"]
            municipality = address["municipality"]
        except (ValueError, KeyError, TypeError) as e:
            raise GeocodingError(f"Malformed geocoding response: missing {e}") from e

        if not isinstance(country, str) or not isinstance(municipality, str):
            raise GeocodingError("Malformed geocoding response: non-string place names")

        return PlaceNameResult(country=country, municipality=municipality, culture=culture)
