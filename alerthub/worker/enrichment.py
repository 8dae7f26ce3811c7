"""
Place-name enrichment job

Resolves the country and municipality of a report location for each
configured culture and stores them as PlaceName rows. Each culture is
resolved and persisted on its own, so one failing culture never costs the
others their result.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError

from alerthub.core.config import settings
from alerthub.core.exceptions import GeocodingError
from alerthub.database.connection import DatabaseConnection
from alerthub.database.store import ReportStore
from alerthub.ingestion.nominatim_client import NominatimClient

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentResult:
    """Outcome of one enrichment run."""
    report_id: int
    resolved: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    report_missing: bool = False

    @property
    def is_complete(self) -> bool:
        return not self.failed

    def error_summary(self) -> str:
        return "; ".join(f"{culture}: {error}" for culture, error in self.failed.items())

    def to_dict(self) -> dict:
        return {
            "report_id": self.report_id,
            "resolved": list(self.resolved),
            "failed": dict(self.failed),
            "report_missing": self.report_missing,
        }


class EnrichmentJob:
    """
    Fetches and stores multi-culture place names for a danger report.

    Safe to run any number of times for the same report: place names are
    upserted per (report, culture).
    """

    def __init__(
        self,
        db: DatabaseConnection,
        geocoder: NominatimClient,
        cultures: Optional[Sequence[str]] = None,
        user_agents: Optional[Sequence[str]] = None,
    ):
        """
        Args:
            db: Database connection
            geocoder: Reverse geocoding client
            cultures: Cultures to resolve, in order
            user_agents: Outbound identities, rotated per culture
        """
        self.db = db
        self.geocoder = geocoder
        self.cultures = list(cultures or settings.enrichment_cultures)
        self.user_agents = list(user_agents or settings.geocoding_user_agents)

    def _user_agent_for(self, index: int) -> Optional[str]:
        if not self.user_agents:
            return None
        return self.user_agents[index % len(self.user_agents)]

    def _report_exists(self, report_id: int) -> bool:
        with self.db.get_read_session() as session:
            return ReportStore(session).get(report_id) is not None

    def run(self, report_id: int, longitude: float, latitude: float) -> EnrichmentResult:
        """
        Resolve and persist place names for every culture.

        Args:
            report_id: Danger report to enrich
            longitude: Report longitude
            latitude: Report latitude

        Returns:
            EnrichmentResult listing resolved and failed cultures
        """
        result = EnrichmentResult(report_id=report_id)

        if not self._report_exists(report_id):
            logger.warning(f"Enrichment skipped, danger report {report_id} no longer exists")
            result.report_missing = True
            return result

        for index, culture in enumerate(self.cultures):
            try:
                place = self.geocoder.resolve(
                    longitude, latitude, culture, user_agent=self._user_agent_for(index)
                )
            except (GeocodingError, ValueError) as e:
                logger.error(f"Geocoding failed for report {report_id} ({culture}): {e}")
                result.failed[culture] = str(e)
                continue

            try:
                with self.db.get_session() as session:
                    ReportStore(session).save_place_name(
                        report_id=report_id,
                        culture=culture,
                        country=place.country,
                        municipality=place.municipality,
                    )
            except SQLAlchemyError as e:
                logger.error(f"Storing place names failed for report {report_id} ({culture}): {e}")
                result.failed[culture] = f"persistence error: {e.__class__.__name__}"
                continue

            result.resolved.append(culture)
            logger.info(
                f"Report {report_id} located in {place.municipality}, {place.country} ({culture})"
            )

        return result
