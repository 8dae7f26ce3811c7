"""
Pytest configuration and fixtures
"""
import pytest
import sys
from datetime import datetime, timedelta
from pathlib import Path

import httpx

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from alerthub.core.geo_utils import Point
from alerthub.crowdsource.image_storage import LocalImageStorage
from alerthub.database.connection import DatabaseConnection
from alerthub.database.models import DangerReport, DisasterType, ReportStatus
from alerthub.database.store import ReportStore
from alerthub.ingestion.nominatim_client import NominatimClient


ATHENS = {"longitude": 23.7275, "latitude": 37.9838}
PATRAS = {"longitude": 21.7346, "latitude": 38.2466}


@pytest.fixture
def db():
    """Fresh in-memory SQLite database with all tables."""
    connection = DatabaseConnection(database_url="sqlite://")
    connection.create_tables()
    yield connection
    connection.drop_tables()
    connection.close()


@pytest.fixture
def file_db(tmp_path):
    """SQLite database file, one connection per session."""
    connection = DatabaseConnection(database_url=f"sqlite:///{tmp_path / 'alerthub.db'}")
    connection.create_tables()
    yield connection
    connection.close()


@pytest.fixture
def image_storage(tmp_path):
    """Image storage under a temporary directory."""
    return LocalImageStorage(base_dir=tmp_path / "images")


@pytest.fixture
def athens_addresses():
    """Nominatim address blocks for Athens by language."""
    return {
        "el": {"country": "Ελλάς", "municipality": "Δήμος Αθηναίων"},
        "en": {"country": "Greece", "municipality": "Municipality of Athens"},
    }


@pytest.fixture
def nominatim_requests():
    """Requests seen by the mock geocoding transport."""
    return []


@pytest.fixture
def geocoder(athens_addresses, nominatim_requests):
    """
    NominatimClient backed by httpx.MockTransport.

    Answers with athens_addresses keyed by the accept-language parameter;
    an unknown language gets a 500.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        nominatim_requests.append(request)
        language = request.url.params.get("accept-language")
        address = athens_addresses.get(language)
        if address is None:
            return httpx.Response(500, json={"error": "unavailable"})
        return httpx.Response(200, json={"address": address})

    client = NominatimClient(http_client=httpx.Client(transport=httpx.MockTransport(handler)))
    yield client
    client._client.close()


@pytest.fixture
def report_factory(db):
    """
    Insert an active report, optionally with place names.

    Usage:
        report_id = report_factory(DisasterType.FLOOD, places={"en-US": ("Greece", "Athens")})
    """
    base_time = datetime(2024, 1, 1, 12, 0, 0)
    counter = {"n": 0}

    def create(
        disaster_type=DisasterType.FLOOD,
        places=None,
        created_at=None,
        culture="en-US",
        description="Water rising on the main road",
        image_name="no-image.png",
        location=ATHENS,
    ):
        counter["n"] += 1
        with db.get_session() as session:
            store = ReportStore(session)
            report = store.add_report(DangerReport(
                disaster_type=disaster_type,
                location=Point(latitude=location["latitude"], longitude=location["longitude"]),
                latitude=location["latitude"],
                longitude=location["longitude"],
                created_at=created_at or base_time + timedelta(minutes=counter["n"]),
                image_name=image_name,
                description=description,
                status=ReportStatus.PENDING,
                culture=culture,
                user_id=f"user-{counter['n']}",
            ))
            for place_culture, (country, municipality) in (places or {}).items():
                store.save_place_name(report.id, place_culture, country, municipality)
            return report.id

    return create
