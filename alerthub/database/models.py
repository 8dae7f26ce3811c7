"""
SQLAlchemy models for AlertHub
Uses GeoAlchemy2 for the PostGIS point type of report locations
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    Column, Integer, Float, String, Text, DateTime, ForeignKey,
    Index, UniqueConstraint, Enum as SQLEnum
)
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.types import TypeDecorator
from geoalchemy2 import Geometry
from geoalchemy2.elements import WKBElement
from geoalchemy2.shape import to_shape
from shapely import wkt as shapely_wkt

import enum

from alerthub.core.constants import (
    CULTURE_MAX_LENGTH,
    DESCRIPTION_MAX_LENGTH,
    IMAGE_NAME_MAX_LENGTH,
    PLACE_NAME_MAX_LENGTH,
    USER_ID_MAX_LENGTH,
)
from alerthub.core.geo_utils import DEFAULT_SRID, Point, to_ewkt

Base = declarative_base()


class DisasterType(enum.IntEnum):
    """Hazard categories a citizen can report. Values are the public index."""
    EARTHQUAKE = 0
    FLOOD = 1
    FIRE = 2
    TORNADO = 3
    HURRICANE = 4
    TSUNAMI = 5
    LANDSLIDE = 6
    STORM = 7
    HEATWAVE = 8
    OTHER = 9

    @property
    def label(self) -> str:
        """Enum-derived display string, e.g. 'Flood'."""
        return self.name.replace("_", " ").title()


class ReportStatus(enum.Enum):
    """
    Danger report lifecycle status.

    PENDING reports are active; APPROVED and REJECTED are archived and terminal.
    """
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @property
    def label(self) -> str:
        return self.name.title()

    @property
    def is_terminal(self) -> bool:
        return self is not ReportStatus.PENDING


class TaskStatus(enum.Enum):
    """Enrichment task queue status."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class GeoPoint(TypeDecorator):
    """
    Geodetic point column.

    PostGIS geometry(POINT, 4326) on PostgreSQL, EWKT text on other
    dialects so the schema also runs on plain SQLite. Values are
    alerthub.core.geo_utils.Point on the Python side.
    """
    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Geometry("POINT", srid=DEFAULT_SRID))
        return dialect.type_descriptor(String(100))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return to_ewkt(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, WKBElement):
            shape = to_shape(value)
        else:
            text = str(value)
            if text.startswith("SRID="):
                text = text.split(";", 1)[1]
            shape = shapely_wkt.loads(text)
        return Point(latitude=shape.y, longitude=shape.x)


class DangerReport(Base):
    """
    Hazard observation submitted by a citizen.

    status is the authoritative lifecycle tag; the active/archived marker
    tables are a fast-path index kept in step with it by ReportStore.
    """
    __tablename__ = "danger_reports"

    id = Column(Integer, primary_key=True, index=True)
    disaster_type = Column(SQLEnum(DisasterType), nullable=False)

    # Location (PostGIS point) plus plain columns for projection
    location = Column(GeoPoint(), nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    image_name = Column(String(IMAGE_NAME_MAX_LENGTH))
    description = Column(String(DESCRIPTION_MAX_LENGTH))
    status = Column(SQLEnum(ReportStatus), nullable=False, default=ReportStatus.PENDING)
    culture = Column(String(CULTURE_MAX_LENGTH), nullable=False)
    user_id = Column(String(USER_ID_MAX_LENGTH), nullable=False)

    active_marker = relationship(
        "ActiveReportMarker", back_populates="report", uselist=False
    )
    archived_marker = relationship(
        "ArchivedReportMarker", back_populates="report", uselist=False
    )
    place_names = relationship(
        "PlaceName", back_populates="report", order_by="PlaceName.id"
    )

    __table_args__ = (
        Index("idx_danger_report_location", location, postgresql_using="gist"),
        Index("idx_danger_report_created_at", created_at),
        Index("idx_danger_report_user_id", user_id),
    )

    @hybrid_property
    def is_active(self) -> bool:
        return self.status == ReportStatus.PENDING

    def __repr__(self):
        return (
            f"<DangerReport({self.id}, {self.disaster_type.name if self.disaster_type is not None else None}, "
            f"status={self.status.value if self.status else None})>"
        )

    def place_name_for(self, culture: str) -> Optional["PlaceName"]:
        """Place names stored for the given culture (case-insensitive), if any."""
        wanted = culture.lower()
        for place_name in self.place_names:
            if place_name.culture.lower() == wanted:
                return place_name
        return None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "disaster_type": self.disaster_type.label,
            "disaster_type_index": int(self.disaster_type),
            "latitude": self.latitude,
            "longitude": self.longitude,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "image_name": self.image_name,
            "description": self.description,
            "status": self.status.value,
            "culture": self.culture,
            "user_id": self.user_id,
        }


class ActiveReportMarker(Base):
    """Present while a danger report is awaiting triage."""
    __tablename__ = "active_danger_reports"

    id = Column(Integer, primary_key=True)
    report_id = Column(
        Integer, ForeignKey("danger_reports.id", ondelete="CASCADE"),
        nullable=False, unique=True
    )
    report = relationship("DangerReport", back_populates="active_marker")

    def __repr__(self):
        return f"<ActiveReportMarker(report_id={self.report_id})>"


class ArchivedReportMarker(Base):
    """Present once a danger report has been approved or rejected."""
    __tablename__ = "archived_danger_reports"

    id = Column(Integer, primary_key=True)
    report_id = Column(
        Integer, ForeignKey("danger_reports.id", ondelete="CASCADE"),
        nullable=False, unique=True
    )
    report = relationship("DangerReport", back_populates="archived_marker")

    def __repr__(self):
        return f"<ArchivedReportMarker(report_id={self.report_id})>"


class PlaceName(Base):
    """
    Country and municipality of a report location in one culture.

    Written by the enrichment job; at most one row per (report, culture).
    """
    __tablename__ = "coordinates_information"

    id = Column(Integer, primary_key=True)
    country = Column(String(PLACE_NAME_MAX_LENGTH), nullable=False)
    municipality = Column(String(PLACE_NAME_MAX_LENGTH), nullable=False)
    culture = Column(String(CULTURE_MAX_LENGTH), nullable=False)
    report_id = Column(
        Integer, ForeignKey("danger_reports.id", ondelete="CASCADE"), nullable=False
    )
    report = relationship("DangerReport", back_populates="place_names")

    __table_args__ = (
        UniqueConstraint("report_id", "culture", name="uq_place_name_report_culture"),
        Index("idx_place_name_country", country),
        Index("idx_place_name_municipality", municipality),
        Index("idx_place_name_culture", culture),
    )

    def __repr__(self):
        return f"<PlaceName(report={self.report_id}, {self.culture}, {self.municipality}, {self.country})>"


class EnrichmentTask(Base):
    """
    Durable queue entry for place-name enrichment of one report.

    Inserted in the same transaction as the report it belongs to.
    """
    __tablename__ = "enrichment_tasks"

    id = Column(Integer, primary_key=True)
    report_id = Column(
        Integer, ForeignKey("danger_reports.id", ondelete="CASCADE"), nullable=False
    )
    longitude = Column(Float, nullable=False)
    latitude = Column(Float, nullable=False)

    status = Column(SQLEnum(TaskStatus), nullable=False, default=TaskStatus.PENDING)
    attempts = Column(Integer, nullable=False, default=0)
    available_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_error = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index("idx_enrichment_task_status_available", status, available_at),
        Index("idx_enrichment_task_report", report_id),
    )

    def __repr__(self):
        return f"<EnrichmentTask({self.id}, report={self.report_id}, {self.status.value}, attempts={self.attempts})>"
