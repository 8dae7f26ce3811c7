"""
AlertHub - Data Ingestion Module
Clients for external data providers.
"""

from alerthub.ingestion.nominatim_client import (
    NominatimClient,
    PlaceNameResult,
    culture_language,
)

__all__ = [
    "NominatimClient",
    "PlaceNameResult",
    "culture_language",
]
