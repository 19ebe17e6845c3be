"""
Base class for release upgrade catalogs.

An upgrade catalog moves persisted state from one release (source_version)
to the next (target_version) in three phases:

1. execute_ddl_updates(operations) - schema changes through alembic Operations
2. execute_pre_dml_updates()       - data fixes that must run before 3
3. execute_dml_updates()           - configuration and artifact changes

Collaborators are passed in explicitly. Nothing here commits: the caller
(the alembic revision or a test) owns the transaction.
"""

import logging
from typing import Dict, Optional

import sqlalchemy as sa

from state import (
    KERBEROS_DESCRIPTOR_ARTIFACT,
    ArtifactStore,
    Cluster,
    ClusterRegistry,
    ConfigHelper,
)

logger = logging.getLogger(__name__)


def column_exists(operations, table_name: str, column_name: str) -> bool:
    """Check if a column exists in a table"""
    inspector = sa.inspect(operations.get_bind())
    if table_name not in inspector.get_table_names():
        return False
    columns = [col['name'] for col in inspector.get_columns(table_name)]
    return column_name in columns


class AbstractUpgradeCatalog:
    """Shared plumbing for versioned upgrade catalogs"""

    source_version: Optional[str] = None
    target_version: Optional[str] = None

    def __init__(self, clusters: ClusterRegistry, config_helper: ConfigHelper,
                 artifact_store: ArtifactStore):
        self.clusters = clusters
        self.config_helper = config_helper
        self.artifact_store = artifact_store

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def upgrade_schema(self, operations):
        logger.info(f"Executing DDL upgrade {self.source_version} -> {self.target_version}")
        self.execute_ddl_updates(operations)

    def upgrade_data(self):
        logger.info(f"Executing DML upgrade {self.source_version} -> {self.target_version}")
        self.execute_pre_dml_updates()
        self.execute_dml_updates()

    def execute_ddl_updates(self, operations):
        raise NotImplementedError

    def execute_pre_dml_updates(self):
        raise NotImplementedError

    def execute_dml_updates(self):
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Configuration helpers
    # ------------------------------------------------------------------

    def update_configuration_properties_for_cluster(
        self,
        cluster: Cluster,
        config_type: str,
        properties: Dict[str, str],
        update_if_exists: bool,
        create_new_config_type: bool,
    ) -> bool:
        """
        Merge properties into the desired configuration of a cluster.

        Args:
            cluster: Cluster to update
            config_type: Configuration type (e.g. 'cluster-env')
            properties: Properties to set
            update_if_exists: Overwrite properties that already have a value
            create_new_config_type: Create the configuration type if the
                cluster has none

        Returns:
            True if a new configuration version was written
        """
        config = cluster.get_desired_config_by_type(config_type)
        if config is None and not create_new_config_type:
            logger.info(f"Config {config_type} not found for cluster {cluster.cluster_name}, skipping")
            return False

        old_properties = config.get_properties() if config else {}
        merged = dict(old_properties)
        for name, value in properties.items():
            if name not in merged or update_if_exists:
                merged[name] = value

        if config is not None and merged == old_properties:
            return False
        if config is None and not merged:
            return False

        self.config_helper.update_config_type(cluster, config_type, merged)
        changed = sorted(k for k in merged if old_properties.get(k) != merged[k])
        logger.info(f"Updated {config_type} for cluster {cluster.cluster_name}: {', '.join(changed)}")
        return True

    def add_new_configurations_from_stack(self):
        """
        Add properties newly defined by the stack to existing desired configs.

        Only configuration types the cluster already has are touched and
        existing values are never overwritten.
        """
        for cluster in self.clusters.get_clusters().values():
            stack_properties = self.config_helper.get_stack_properties(cluster)
            if not stack_properties:
                continue

            desired_types = set(cluster.get_desired_configs())
            new_properties: Dict[str, Dict[str, str]] = {}
            for property_info in stack_properties:
                if not property_info.filename:
                    continue
                config_type = ConfigHelper.file_name_to_config_type(property_info.filename)
                if config_type in desired_types:
                    new_properties.setdefault(config_type, {})[property_info.name] = property_info.value or ''

            for config_type in sorted(new_properties):
                self.update_configuration_properties_for_cluster(
                    cluster, config_type, new_properties[config_type], False, False)

    # ------------------------------------------------------------------
    # Kerberos descriptor artifacts
    # ------------------------------------------------------------------

    def update_kerberos_descriptor_artifacts(self):
        """Run update_kerberos_descriptor_artifact() for every stored descriptor"""
        artifacts = self.artifact_store.find_by_name(KERBEROS_DESCRIPTOR_ARTIFACT)
        logger.debug(f"Found {len(artifacts)} Kerberos descriptor artifact(s)")
        for artifact in artifacts:
            self.update_kerberos_descriptor_artifact(self.artifact_store, artifact)

    def update_kerberos_descriptor_artifact(self, artifact_store: ArtifactStore, artifact):
        """Override to change a stored Kerberos descriptor. Default: no changes."""
        pass
