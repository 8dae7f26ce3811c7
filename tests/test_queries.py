"""
Tests for the read-side report queries
"""
import pytest
from datetime import datetime, timedelta

from alerthub.core.exceptions import ReportNotFoundError, SubmissionValidationError
from alerthub.crowdsource.queries import ReportQueries
from alerthub.database.models import DisasterType, ReportStatus
from alerthub.database.pagination import total_pages
from alerthub.database.store import ReportStore

from conftest import PATRAS

ATHENS_PLACES = {"en-US": ("Greece", "Athens"), "el-GR": ("Ελλάς", "Αθήνα")}
PATRAS_PLACES = {"en-US": ("Greece", "Patras"), "el-GR": ("Ελλάς", "Πάτρα")}


def archive(db, report_id, outcome):
    with db.get_session() as session:
        store = ReportStore(session)
        store.archive(store.get(report_id), outcome)


@pytest.fixture
def queries(db):
    return ReportQueries(db, images_url="http://testserver/UploadDangerReportImages/")


class TestGetReport:
    """Test suite for ReportQueries.get_report."""

    def test_greek_projection(self, queries, report_factory):
        """Test el-GR translates type, status and place names."""
        report_id = report_factory(DisasterType.FLOOD, places=ATHENS_PLACES)

        view = queries.get_report(report_id, "el-GR")

        assert view.id == report_id
        assert view.disaster_type == "Πλημμύρα"
        assert view.status == "Εκκρεμεί"
        assert view.country == "Ελλάς"
        assert view.municipality == "Αθήνα"
        assert view.image_url == "http://testserver/UploadDangerReportImages/no-image.png"

    def test_english_projection(self, queries, report_factory):
        report_id = report_factory(DisasterType.FLOOD, places=ATHENS_PLACES)

        view = queries.get_report(report_id, "en-us")

        assert view.disaster_type == "Flood"
        assert view.status == "Pending"
        assert view.municipality == "Athens"

    def test_unknown_culture(self, queries, report_factory):
        """Test an unsupported culture gives empty labels and unknown places."""
        report_id = report_factory(DisasterType.FIRE, places=ATHENS_PLACES)

        view = queries.get_report(report_id, "fr-FR")

        assert view.disaster_type == ""
        assert view.status == ""
        assert view.country == "unknown"
        assert view.municipality == "unknown"

    def test_not_enriched_yet(self, queries, report_factory):
        """Test place names fall back to unknown before enrichment."""
        view = queries.get_report(report_factory(), "en-US")
        assert view.country == "unknown"
        assert view.municipality == "unknown"

    def test_not_found(self, queries):
        with pytest.raises(ReportNotFoundError):
            queries.get_report(12345, "en-US")

    def test_to_dict(self, queries, report_factory):
        report_id = report_factory(created_at=datetime(2024, 5, 1, 8, 30))
        data = queries.get_report(report_id, "en-US").to_dict()
        assert data["created_at"] == "2024-05-01T08:30:00"
        assert data["user_id"].startswith("user-")


class TestActiveReports:
    """Test suite for ReportQueries.active_reports."""

    def test_second_page(self, queries, report_factory):
        """Test page 2 of size 10 over 25 reports holds the 11th to 20th newest."""
        start = datetime(2024, 1, 1)
        ids = [report_factory(created_at=start + timedelta(hours=i)) for i in range(25)]
        newest_first = list(reversed(ids))

        page = queries.active_reports(page_number=2, items_per_page=10, culture="en-US")

        assert [view.id for view in page] == newest_first[10:20]
        assert total_pages(25, 10) == 3

    def test_last_partial_page(self, queries, report_factory):
        ids = [report_factory() for _ in range(5)]
        page = queries.active_reports(page_number=2, items_per_page=3, culture="en-US")
        assert [view.id for view in page] == list(reversed(ids))[3:]

    def test_excludes_archived(self, db, queries, report_factory):
        """Test triaged reports leave the active feed."""
        kept = report_factory()
        archived = report_factory()
        archive(db, archived, ReportStatus.APPROVED)

        page = queries.active_reports(1, 10, "en-US")

        assert [view.id for view in page] == [kept]

    def test_default_culture_untranslated(self, queries, report_factory):
        """Test en-US returns the enum labels."""
        report_factory(DisasterType.HEATWAVE, places=ATHENS_PLACES)

        view = queries.active_reports(1, 10, "en-US")[0]

        assert view.disaster_type == "Heatwave"
        assert view.status == "Pending"
        assert view.municipality == "Athens"

    def test_greek_translated(self, queries, report_factory):
        report_factory(DisasterType.HEATWAVE, places=ATHENS_PLACES)

        view = queries.active_reports(1, 10, "el-GR")[0]

        assert view.disaster_type == "Καύσωνας"
        assert view.status == "Εκκρεμεί"
        assert view.municipality == "Αθήνα"

    @pytest.mark.parametrize("page_number,items_per_page", [(0, 10), (1, 0), (-1, -1)])
    def test_invalid_paging(self, queries, page_number, items_per_page):
        with pytest.raises(SubmissionValidationError):
            queries.active_reports(page_number, items_per_page, "en-US")


class TestArchivedReports:
    """Test suite for the approved and rejected feeds."""

    def test_approved_and_rejected_split(self, db, queries, report_factory):
        approved = [report_factory(places=ATHENS_PLACES) for _ in range(3)]
        rejected = report_factory(places=ATHENS_PLACES)
        report_factory()
        for report_id in approved:
            archive(db, report_id, ReportStatus.APPROVED)
        archive(db, rejected, ReportStatus.REJECTED)

        approved_page = queries.approved_reports(1, 2, "en-US")
        rejected_page = queries.rejected_reports(1, 2, "en-US")

        assert approved_page.total_pages == 2
        assert [view.id for view in approved_page.items] == list(reversed(approved))[:2]
        assert rejected_page.total_pages == 1
        assert [view.id for view in rejected_page.items] == [rejected]

    def test_only_disaster_type_translated(self, db, queries, report_factory):
        report_id = report_factory(DisasterType.STORM, places=ATHENS_PLACES)
        archive(db, report_id, ReportStatus.APPROVED)

        view = queries.approved_reports(1, 10, "el-GR").items[0]

        assert view.disaster_type == "Καταιγίδα"
        assert view.municipality == "Αθήνα"
        assert "status" not in view.to_dict()

    def test_empty(self, queries):
        page = queries.rejected_reports(1, 10, "en-US")
        assert page.total_pages == 0
        assert page.to_dict() == {"total_pages": 0, "danger_reports": []}

    def test_pending_is_not_archived(self, queries):
        with pytest.raises(SubmissionValidationError):
            queries.archived_reports(ReportStatus.PENDING, 1, 10, "en-US")


class TestImportanceRanking:
    """Test suite for ReportQueries.importance_ranking."""

    def test_groups_ordered_by_size(self, queries, report_factory):
        """Test the largest group comes first and ties keep insertion order."""
        report_factory(DisasterType.FIRE, places=PATRAS_PLACES, location=PATRAS)
        for _ in range(3):
            report_factory(DisasterType.FLOOD, places=ATHENS_PLACES)
        report_factory(DisasterType.FIRE, places=ATHENS_PLACES)

        page = queries.importance_ranking(1, 10, "en-US")

        assert page.total_pages == 1
        assert [(g.disaster_type, g.municipality, g.importance) for g in page.items] == [
            ("Flood", "Athens", 3),
            ("Fire", "Patras", 1),
            ("Fire", "Athens", 1),
        ]
        assert page.items[0].disaster_type_index == int(DisasterType.FLOOD)

    def test_culture_selects_place_names(self, queries, report_factory):
        """Test each report counts once, in the requested culture's names."""
        for _ in range(2):
            report_factory(DisasterType.FLOOD, places=ATHENS_PLACES)

        page = queries.importance_ranking(1, 10, "el-GR")

        assert len(page.items) == 1
        group = page.items[0]
        assert group.country == "Ελλάς"
        assert group.municipality == "Αθήνα"
        assert group.disaster_type == "Πλημμύρα"
        assert group.importance == 2

    def test_archived_reports_not_counted(self, db, queries, report_factory):
        report_id = report_factory(DisasterType.FLOOD, places=ATHENS_PLACES)
        report_factory(DisasterType.FLOOD, places=ATHENS_PLACES)
        archive(db, report_id, ReportStatus.REJECTED)

        page = queries.importance_ranking(1, 10, "en-US")

        assert page.items[0].importance == 1

    def test_paginated(self, queries, report_factory):
        for disaster_type in (DisasterType.FLOOD, DisasterType.FIRE, DisasterType.STORM):
            report_factory(disaster_type, places=ATHENS_PLACES)

        page = queries.importance_ranking(2, 2, "en-US")

        assert page.total_pages == 2
        assert len(page.items) == 1


class TestActiveByDisasterAndMunicipality:
    """Test suite for the operator drill-down query."""

    def test_matches_exact_municipality(self, db, queries, report_factory):
        first = report_factory(DisasterType.FLOOD, places=ATHENS_PLACES, description="Flooded road")
        second = report_factory(DisasterType.FLOOD, places=ATHENS_PLACES)
        report_factory(DisasterType.FIRE, places=ATHENS_PLACES)
        report_factory(DisasterType.FLOOD, places=PATRAS_PLACES, location=PATRAS)
        archived = report_factory(DisasterType.FLOOD, places=ATHENS_PLACES)
        archive(db, archived, ReportStatus.APPROVED)

        views = queries.active_reports_by_disaster_and_municipality(
            DisasterType.FLOOD, "Athens", "el-GR"
        )

        assert [view.id for view in views] == [first, second]
        assert views[0].disaster_type == "Πλημμύρα"
        assert views[0].description == "Flooded road"
        assert views[0].image_url.endswith("/no-image.png")

    def test_partial_name_does_not_match(self, queries, report_factory):
        report_factory(DisasterType.FLOOD, places=ATHENS_PLACES)
        assert queries.active_reports_by_disaster_and_municipality(
            DisasterType.FLOOD, "Athen", "en-US"
        ) == []
