"""
Upgrade catalog for 2.5.1 -> 2.5.2.

SCHEMA CHANGES:
- clusterconfig: Add service_deleted column (SMALLINT, nullable, default 0)

DATA CHANGES:
- Add configuration properties newly defined by the stack
- Reset cluster-env stack_tools, stack_features and stack_root to the stack defaults
- Remove livy.superusers from SPARK/livy-conf and SPARK2/livy2-conf in stored
  Kerberos descriptors (the value is now computed by the service advisors)
- Fix livy.superusers in livy-conf and livy2-conf for clusters with a
  Kerberized Zeppelin: replace the bogus 'zeppelin-<clustername>' entry with
  the real Zeppelin principal name
"""

import logging
from typing import Dict, Iterable, Optional

import sqlalchemy as sa

from database import ArtifactEntity
from state import ArtifactStore, Cluster, ConfigHelper
from state.kerberos import DeconstructedPrincipal, KerberosDescriptor, KerberosDescriptorContainer
from upgrade.catalog import AbstractUpgradeCatalog, column_exists

logger = logging.getLogger(__name__)

CLUSTERCONFIG_TABLE = 'clusterconfig'
SERVICE_DELETED_COLUMN = 'service_deleted'

CLUSTER_ENV = 'cluster-env'
ZEPPELIN_ENV = 'zeppelin-env'
ZEPPELIN_PRINCIPAL_PROPERTY = 'zeppelin.server.kerberos.principal'
LIVY_SUPERUSERS_PROPERTY = 'livy.superusers'

STACK_PROPERTIES_TO_RESET = frozenset({'stack_tools', 'stack_features', 'stack_root'})

# Only the principal name is used, so any realm will do
PLACEHOLDER_REALM = 'EXAMPLE.COM'


def add_service_deleted_column(operations):
    """Add clusterconfig.service_deleted unless it is already there"""
    if column_exists(operations, CLUSTERCONFIG_TABLE, SERVICE_DELETED_COLUMN):
        logger.info(f"{CLUSTERCONFIG_TABLE}.{SERVICE_DELETED_COLUMN} already exists, skipping")
        return

    operations.add_column(
        CLUSTERCONFIG_TABLE,
        sa.Column(SERVICE_DELETED_COLUMN, sa.SmallInteger(), nullable=True, server_default='0'),
    )
    logger.info(f"Added {CLUSTERCONFIG_TABLE}.{SERVICE_DELETED_COLUMN}")


def remove_configuration_specification(container: Optional[KerberosDescriptorContainer],
                                       config_type: str, property_name: str) -> bool:
    """
    Remove config_type/property_name from a descriptor container.

    Returns:
        True if the property was present and removed, False otherwise
    """
    if container is None:
        return False

    configuration = container.get_configuration(config_type)
    if configuration is None:
        return False

    if configuration.remove_property(property_name):
        logger.info(f"Removed {config_type}/{property_name} from the descriptor named {container.name}")
        return True
    return False


def split_list_value(value: Optional[str]) -> set:
    """Split a comma-delimited value into a set of trimmed, non-empty items"""
    if not value:
        return set()
    return {item.strip() for item in value.split(',') if item.strip()}


def join_list_value(values: Iterable[str]) -> str:
    return ','.join(sorted(values))


class UpgradeCatalog252(AbstractUpgradeCatalog):
    """Upgrades persisted state from 2.5.1 to 2.5.2"""

    source_version = '2.5.1'
    target_version = '2.5.2'

    def execute_ddl_updates(self, operations):
        add_service_deleted_column(operations)

    def execute_pre_dml_updates(self):
        pass

    def execute_dml_updates(self):
        self.add_new_configurations_from_stack()
        self.reset_stack_tools_and_features()
        self.update_kerberos_descriptor_artifacts()
        self.fix_livy_superusers()

    def reset_stack_tools_and_features(self):
        """Reset stack_tools, stack_features and stack_root in cluster-env to the stack defaults"""
        for cluster in self.clusters.get_clusters().values():
            if cluster.get_desired_config_by_type(CLUSTER_ENV) is None:
                continue

            stack_properties = self.config_helper.get_stack_properties(cluster)
            if not stack_properties:
                continue

            new_stack_properties: Dict[str, str] = {}
            for property_info in stack_properties:
                if not property_info.filename:
                    continue
                if ConfigHelper.file_name_to_config_type(property_info.filename) != CLUSTER_ENV:
                    continue
                if property_info.name in STACK_PROPERTIES_TO_RESET:
                    new_stack_properties[property_info.name] = property_info.value

            self.update_configuration_properties_for_cluster(
                cluster, CLUSTER_ENV, new_stack_properties, True, False)

    def update_kerberos_descriptor_artifact(self, artifact_store: ArtifactStore, artifact: ArtifactEntity):
        """Remove livy.superusers from the SPARK and SPARK2 sections of a stored descriptor"""
        if artifact is None:
            return

        descriptor = KerberosDescriptor.from_dict(artifact.data)
        if descriptor is None:
            return

        updated_spark = remove_configuration_specification(
            descriptor.get_service('SPARK'), 'livy-conf', LIVY_SUPERUSERS_PROPERTY)
        updated_spark2 = remove_configuration_specification(
            descriptor.get_service('SPARK2'), 'livy2-conf', LIVY_SUPERUSERS_PROPERTY)

        if updated_spark or updated_spark2:
            artifact.data = descriptor.to_dict()
            artifact_store.merge(artifact)

    def fix_livy_superusers(self):
        """
        Fix livy.superusers in livy-conf and livy2-conf.

        With Kerberos enabled, older Spark/Spark2 descriptors set
        livy.superusers to 'zeppelin-<clustername>'. If Zeppelin has a
        Kerberos principal, that entry is replaced by the principal name.
        """
        for cluster in self.clusters.get_clusters().values():
            zeppelin_env = cluster.get_desired_config_by_type(ZEPPELIN_ENV)
            if zeppelin_env is None:
                continue

            zeppelin_principal = zeppelin_env.get_properties().get(ZEPPELIN_PRINCIPAL_PROPERTY)
            if not zeppelin_principal:
                continue

            principal = DeconstructedPrincipal.value_of(zeppelin_principal, PLACEHOLDER_REALM)
            new_principal_name = principal.principal_name
            old_principal_name = f"zeppelin-{cluster.cluster_name}".lower()

            for config_type in ('livy-conf', 'livy2-conf'):
                self.update_list_values(cluster, config_type, LIVY_SUPERUSERS_PROPERTY,
                                        {new_principal_name}, {old_principal_name})

    def update_list_values(self, cluster: Cluster, config_type: str, property_name: str,
                           values_to_add: Optional[set], values_to_remove: Optional[set]) -> bool:
        """
        Add and remove items of a comma-delimited property value.

        The configuration is only rewritten when the set of values changed.

        Returns:
            True if the configuration was updated
        """
        config = cluster.get_desired_config_by_type(config_type)
        if config is None:
            return False

        existing_value = config.get_properties().get(property_name)
        new_value = None

        if not existing_value:
            if values_to_add:
                new_value = join_list_value(values_to_add)
        else:
            value_set = split_list_value(existing_value)
            original = set(value_set)
            if values_to_remove:
                value_set -= set(values_to_remove)
            if values_to_add:
                value_set |= set(values_to_add)
            if value_set != original:
                new_value = join_list_value(value_set)

        if not new_value:
            return False

        return self.update_configuration_properties_for_cluster(
            cluster, config_type, {property_name: new_value}, True, True)
