"""v2.5.1 baseline - Tables as shipped with release 2.5.1

Revision ID: 001_v2_5_1
Revises: None
Create Date: 2017-06-01 12:00:00

Databases created by 2.5.1 already have these tables; every create is
guarded so stamping an existing 2.5.1 database and upgrading from it works.

TABLES IN v2.5.1:
- clusters: Managed clusters and their desired stack
- clusterconfig: Versioned configuration types (WITHOUT service_deleted)
- stack_properties: Property definitions shipped with each stack
- artifact: JSON documents (Kerberos descriptors)
- metainfo: Server metadata (schema version)
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy import inspect


# revision identifiers, used by Alembic.
revision = '001_v2_5_1'
down_revision = None
branch_labels = None
depends_on = None


def table_exists(table_name: str) -> bool:
    """Check if a table exists in the database"""
    bind = op.get_bind()
    inspector = inspect(bind)
    return table_name in inspector.get_table_names()


def upgrade():
    """Create the 2.5.1 schema"""

    if not table_exists('clusters'):
        op.create_table(
            'clusters',
            sa.Column('cluster_id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('cluster_name', sa.String(100), nullable=False, unique=True),
            sa.Column('desired_stack', sa.String(100), nullable=True),
        )

    if not table_exists('clusterconfig'):
        op.create_table(
            'clusterconfig',
            sa.Column('config_id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('cluster_id', sa.Integer(),
                      sa.ForeignKey('clusters.cluster_id', ondelete='CASCADE'), nullable=False),
            sa.Column('type_name', sa.String(100), nullable=False),
            sa.Column('version_tag', sa.String(100), nullable=False),
            sa.Column('version', sa.Integer(), nullable=False),
            sa.Column('config_data', sa.Text(), nullable=False),
            sa.Column('selected', sa.SmallInteger(), nullable=False, server_default='0'),
            sa.Column('create_timestamp', sa.DateTime(), nullable=False),
            sa.UniqueConstraint('cluster_id', 'type_name', 'version_tag', name='uq_config_type_tag'),
        )

    if not table_exists('stack_properties'):
        op.create_table(
            'stack_properties',
            sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column('stack', sa.String(100), nullable=False),
            sa.Column('filename', sa.String(255), nullable=True),
            sa.Column('property_name', sa.String(255), nullable=False),
            sa.Column('property_value', sa.Text(), nullable=True),
            sa.UniqueConstraint('stack', 'filename', 'property_name', name='uq_stack_property'),
        )

    if not table_exists('artifact'):
        op.create_table(
            'artifact',
            sa.Column('artifact_name', sa.String(255), primary_key=True),
            sa.Column('foreign_keys', sa.String(255), primary_key=True),
            sa.Column('artifact_data', sa.Text(), nullable=False),
        )

    if not table_exists('metainfo'):
        op.create_table(
            'metainfo',
            sa.Column('metainfo_key', sa.String(255), primary_key=True),
            sa.Column('metainfo_value', sa.String(255), nullable=True),
        )
        op.execute(
            sa.text("INSERT INTO metainfo (metainfo_key, metainfo_value) VALUES ('version', :version)")
            .bindparams(version='2.5.1')
        )


def downgrade():
    raise Exception(
        "Downgrade not supported below the 2.5.1 baseline. "
        "Restore from backup if you need to revert."
    )
