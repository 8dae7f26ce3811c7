"""
Initial migration - Create danger report schema

Revision ID: 001_initial
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from geoalchemy2 import Geometry

# Revision identifiers
revision = '001_initial'
down_revision = None
branch_labels = None
depends_on = None

DISASTER_TYPES = (
    'EARTHQUAKE', 'FLOOD', 'FIRE', 'TORNADO', 'HURRICANE',
    'TSUNAMI', 'LANDSLIDE', 'STORM', 'HEATWAVE', 'OTHER',
)
REPORT_STATUSES = ('PENDING', 'APPROVED', 'REJECTED')
TASK_STATUSES = ('PENDING', 'RUNNING', 'COMPLETED', 'FAILED')


def upgrade() -> None:
    """Create all tables."""

    # Enable PostGIS extension
    op.execute("CREATE EXTENSION IF NOT EXISTS postgis")

    # Create danger_reports table
    op.create_table(
        'danger_reports',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('disaster_type', sa.Enum(*DISASTER_TYPES, name='disastertype'), nullable=False),
        sa.Column('location', Geometry('POINT', srid=4326, spatial_index=False), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('image_name', sa.String(200)),
        sa.Column('description', sa.String(2000)),
        sa.Column('status', sa.Enum(*REPORT_STATUSES, name='reportstatus'), nullable=False,
                  server_default='PENDING'),
        sa.Column('culture', sa.String(10), nullable=False),
        sa.Column('user_id', sa.String(450), nullable=False),
    )

    op.create_index('ix_danger_reports_id', 'danger_reports', ['id'])
    op.create_index('idx_danger_report_location', 'danger_reports', ['location'], postgresql_using='gist')
    op.create_index('idx_danger_report_created_at', 'danger_reports', ['created_at'])
    op.create_index('idx_danger_report_user_id', 'danger_reports', ['user_id'])

    # Active / archived marker tables
    for table_name in ('active_danger_reports', 'archived_danger_reports'):
        op.create_table(
            table_name,
            sa.Column('id', sa.Integer(), primary_key=True),
            sa.Column(
                'report_id', sa.Integer(),
                sa.ForeignKey('danger_reports.id', ondelete='CASCADE'),
                nullable=False, unique=True
            ),
        )

    # Create coordinates_information table
    op.create_table(
        'coordinates_information',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('country', sa.String(450), nullable=False),
        sa.Column('municipality', sa.String(450), nullable=False),
        sa.Column('culture', sa.String(10), nullable=False),
        sa.Column(
            'report_id', sa.Integer(),
            sa.ForeignKey('danger_reports.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.UniqueConstraint('report_id', 'culture', name='uq_place_name_report_culture'),
    )

    op.create_index('idx_place_name_country', 'coordinates_information', ['country'])
    op.create_index('idx_place_name_municipality', 'coordinates_information', ['municipality'])
    op.create_index('idx_place_name_culture', 'coordinates_information', ['culture'])

    # Create enrichment_tasks table
    op.create_table(
        'enrichment_tasks',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column(
            'report_id', sa.Integer(),
            sa.ForeignKey('danger_reports.id', ondelete='CASCADE'),
            nullable=False
        ),
        sa.Column('longitude', sa.Float(), nullable=False),
        sa.Column('latitude', sa.Float(), nullable=False),
        sa.Column('status', sa.Enum(*TASK_STATUSES, name='taskstatus'), nullable=False,
                  server_default='PENDING'),
        sa.Column('attempts', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('available_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('last_error', sa.Text()),
        sa.Column('created_at', sa.DateTime(), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now()),
    )

    op.create_index('idx_enrichment_task_status_available', 'enrichment_tasks', ['status', 'available_at'])
    op.create_index('idx_enrichment_task_report', 'enrichment_tasks', ['report_id'])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table('enrichment_tasks')
    op.drop_table('coordinates_information')
    op.drop_table('archived_danger_reports')
    op.drop_table('active_danger_reports')
    op.drop_table('danger_reports')
    sa.Enum(name='taskstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='reportstatus').drop(op.get_bind(), checkfirst=True)
    sa.Enum(name='disastertype').drop(op.get_bind(), checkfirst=True)
