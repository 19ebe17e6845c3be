"""
Tests for UpgradeCatalog252 wiring: versions, phases and step order.
"""

from unittest.mock import MagicMock, Mock, call, patch

import pytest

from upgrade.catalog import AbstractUpgradeCatalog
from upgrade.catalog_252 import UpgradeCatalog252


class TestUpgradeCatalog252:

    def test_versions(self):
        assert UpgradeCatalog252.source_version == '2.5.1'
        assert UpgradeCatalog252.target_version == '2.5.2'

    def test_dml_steps_run_in_order(self, catalog):
        manager = MagicMock()
        with patch.object(catalog, 'add_new_configurations_from_stack', manager.add_new), \
                patch.object(catalog, 'reset_stack_tools_and_features', manager.reset), \
                patch.object(catalog, 'update_kerberos_descriptor_artifacts', manager.kerberos), \
                patch.object(catalog, 'fix_livy_superusers', manager.livy):
            catalog.upgrade_data()

        assert manager.mock_calls == [call.add_new(), call.reset(), call.kerberos(), call.livy()]

    def test_ddl_adds_service_deleted_column(self, catalog):
        operations = Mock()
        with patch('upgrade.catalog_252.add_service_deleted_column') as mock_add:
            catalog.upgrade_schema(operations)

        mock_add.assert_called_once_with(operations)

    def test_store_failure_propagates(self, catalog):
        catalog.clusters = Mock()
        catalog.clusters.get_clusters.side_effect = RuntimeError("database is locked")

        with pytest.raises(RuntimeError, match="database is locked"):
            catalog.upgrade_data()

    def test_empty_database(self, catalog):
        catalog.upgrade_data()


class TestAbstractUpgradeCatalog:

    def test_phases_must_be_implemented(self):
        base = AbstractUpgradeCatalog(Mock(), Mock(), Mock())

        with pytest.raises(NotImplementedError):
            base.upgrade_data()
        with pytest.raises(NotImplementedError):
            base.upgrade_schema(Mock())
