"""v2.5.2 upgrade - service_deleted column, stack defaults and Livy superusers

Revision ID: 002_v2_5_2
Revises: 001_v2_5_1
Create Date: 2017-08-01 12:00:00

SCHEMA CHANGES:
- clusterconfig: Add service_deleted column (SMALLINT, nullable, default 0)

DATA CHANGES:
- Add configuration properties newly defined by each cluster's stack
- cluster-env: Reset stack_tools, stack_features, stack_root to stack defaults
- Kerberos descriptors: Remove livy.superusers from SPARK/livy-conf and
  SPARK2/livy2-conf (now set by the service advisors)
- livy-conf, livy2-conf: Replace 'zeppelin-<clustername>' in livy.superusers
  with the Zeppelin Kerberos principal name
- metainfo: version = 2.5.2

All work is done by upgrade.catalog_252.UpgradeCatalog252.
"""
import logging

from alembic import op
import sqlalchemy as sa
from sqlalchemy.orm import Session

from state import ArtifactStore, ClusterRegistry, ConfigHelper
from upgrade.catalog import column_exists
from upgrade.catalog_252 import CLUSTERCONFIG_TABLE, SERVICE_DELETED_COLUMN, UpgradeCatalog252


# revision identifiers, used by Alembic.
revision = '002_v2_5_2'
down_revision = '001_v2_5_1'
branch_labels = None
depends_on = None

logger = logging.getLogger('alembic.runtime.migration')


def upgrade():
    """Run UpgradeCatalog252 inside the migration transaction"""
    bind = op.get_bind()

    # Session joins the migration transaction; alembic commits it
    session = Session(bind=bind)
    try:
        catalog = UpgradeCatalog252(
            ClusterRegistry(session),
            ConfigHelper(session),
            ArtifactStore(session),
        )
        catalog.upgrade_schema(op)
        catalog.upgrade_data()
        session.flush()
    finally:
        session.close()

    op.execute(
        sa.text("UPDATE metainfo SET metainfo_value = :version WHERE metainfo_key = 'version'")
        .bindparams(version=UpgradeCatalog252.target_version)
    )
    logger.info(f"Upgraded to {UpgradeCatalog252.target_version}")


def downgrade():
    """Drop service_deleted; configuration changes are not reverted"""

    if column_exists(op, CLUSTERCONFIG_TABLE, SERVICE_DELETED_COLUMN):
        with op.batch_alter_table(CLUSTERCONFIG_TABLE, schema=None) as batch_op:
            batch_op.drop_column(SERVICE_DELETED_COLUMN)

    op.execute(
        sa.text("UPDATE metainfo SET metainfo_value = :version WHERE metainfo_key = 'version'")
        .bindparams(version=UpgradeCatalog252.source_version)
    )
