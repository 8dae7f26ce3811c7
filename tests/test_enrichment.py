"""
Tests for the place-name enrichment job
"""
import pytest
from unittest.mock import MagicMock, patch

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from alerthub.core.exceptions import GeocodingError
from alerthub.database.models import PlaceName
from alerthub.ingestion.nominatim_client import PlaceNameResult
from alerthub.worker.enrichment import EnrichmentJob, EnrichmentResult

from conftest import ATHENS


def stored_place_names(db, report_id):
    with db.get_read_session() as session:
        return list(session.scalars(
            select(PlaceName).where(PlaceName.report_id == report_id).order_by(PlaceName.id)
        ))


class TestEnrichmentJob:
    """Test suite for EnrichmentJob."""

    def test_all_cultures_resolved(self, db, geocoder, report_factory):
        """Test every configured culture gets a place name row."""
        report_id = report_factory()
        job = EnrichmentJob(db, geocoder, cultures=["el-GR", "en-US"])

        result = job.run(report_id, ATHENS["longitude"], ATHENS["latitude"])

        assert result.is_complete
        assert result.resolved == ["el-GR", "en-US"]
        places = {p.culture: (p.country, p.municipality) for p in stored_place_names(db, report_id)}
        assert places == {
            "el-GR": ("Ελλάς", "Δήμος Αθηναίων"),
            "en-US": ("Greece", "Municipality of Athens"),
        }

    def test_failing_culture_does_not_block_others(self, db, geocoder, athens_addresses, report_factory):
        """Test el failing and en succeeding leaves exactly the en record."""
        del athens_addresses["el"]
        report_id = report_factory()
        job = EnrichmentJob(db, geocoder, cultures=["el-GR", "en-US"])

        result = job.run(report_id, ATHENS["longitude"], ATHENS["latitude"])

        assert not result.is_complete
        assert result.resolved == ["en-US"]
        assert "el-GR" in result.failed
        places = stored_place_names(db, report_id)
        assert len(places) == 1
        assert places[0].culture == "en-US"
        assert places[0].municipality == "Municipality of Athens"

    def test_rerun_is_idempotent(self, db, geocoder, athens_addresses, report_factory):
        """Test running twice keeps one row per culture with the latest names."""
        report_id = report_factory()
        job = EnrichmentJob(db, geocoder, cultures=["el-GR", "en-US"])

        job.run(report_id, ATHENS["longitude"], ATHENS["latitude"])
        athens_addresses["en"] = {"country": "Greece", "municipality": "Athens"}
        job.run(report_id, ATHENS["longitude"], ATHENS["latitude"])

        places = stored_place_names(db, report_id)
        assert len(places) == 2
        assert {p.culture for p in places} == {"el-GR", "en-US"}
        assert [p.municipality for p in places if p.culture == "en-US"] == ["Athens"]

    def test_user_agents_rotate_per_culture(self, db, geocoder, nominatim_requests, report_factory):
        """Test each culture's request uses the next configured user agent."""
        report_id = report_factory()
        job = EnrichmentJob(
            db, geocoder, cultures=["el-GR", "en-US"], user_agents=["AgentA", "AgentB"]
        )

        job.run(report_id, ATHENS["longitude"], ATHENS["latitude"])

        assert [r.headers["User-Agent"] for r in nominatim_requests] == ["AgentA", "AgentB"]

    def test_missing_report_is_skipped(self, db, geocoder, nominatim_requests):
        """Test a deleted report is logged and skipped without geocoding."""
        job = EnrichmentJob(db, geocoder, cultures=["en-US"])

        result = job.run(999, ATHENS["longitude"], ATHENS["latitude"])

        assert result.report_missing
        assert result.is_complete
        assert nominatim_requests == []

    def test_persistence_failure_is_recorded(self, db, report_factory):
        """Test a database error for one culture is recorded, not raised."""
        report_id = report_factory()
        geocoder = MagicMock()
        geocoder.resolve.side_effect = lambda lon, lat, culture, user_agent=None: PlaceNameResult(
            country="Greece", municipality="Athens", culture=culture
        )
        job = EnrichmentJob(db, geocoder, cultures=["el-GR", "en-US"])

        original = "alerthub.worker.enrichment.ReportStore.save_place_name"
        calls = {"n": 0}

        def flaky_save(self, report_id, culture, country, municipality):
            calls["n"] += 1
            if culture == "el-GR":
                raise OperationalError("INSERT", {}, Exception("database is locked"))
            return PlaceName(report_id=report_id, culture=culture, country=country, municipality=municipality)

        with patch(original, flaky_save):
            result = job.run(report_id, ATHENS["longitude"], ATHENS["latitude"])

        assert calls["n"] == 2
        assert result.resolved == ["en-US"]
        assert result.failed["el-GR"].startswith("persistence error")

    def test_geocoding_error_message_recorded(self, db, report_factory):
        """Test the geocoding error text ends up in the result."""
        report_id = report_factory()
        geocoder = MagicMock()
        geocoder.resolve.side_effect = GeocodingError("HTTP Error: 429", status_code=429)
        job = EnrichmentJob(db, geocoder, cultures=["en-US"])

        result = job.run(report_id, ATHENS["longitude"], ATHENS["latitude"])

        assert result.failed == {"en-US": "HTTP Error: 429"}
        assert "en-US: HTTP Error: 429" in result.error_summary()


class TestEnrichmentResult:
    """Test suite for EnrichmentResult."""

    def test_to_dict(self):
        """Test result serialization."""
        result = EnrichmentResult(report_id=7, resolved=["en-US"], failed={"el-GR": "timeout"})
        assert result.to_dict() == {
            "report_id": 7,
            "resolved": ["en-US"],
            "failed": {"el-GR": "timeout"},
            "report_missing": False,
        }
