"""
Tests for resetting stack_tools, stack_features and stack_root in cluster-env.
"""

import pytest

from database import ClusterConfigEntity

HDP_26_CLUSTER_ENV = [
    ('cluster-env.xml', 'stack_tools', '{"new": "tools"}'),
    ('cluster-env.xml', 'stack_features', '{"new": "features"}'),
    ('cluster-env.xml', 'stack_root', '/usr/hdp'),
    ('cluster-env.xml', 'security_enabled', 'false'),
    ('hadoop-env.xml', 'stack_root', '/wrong/file'),
    (None, 'stack_tools', 'no-file'),
]

OLD_CLUSTER_ENV = {
    'stack_tools': '{"old": "tools"}',
    'stack_features': '{"old": "features"}',
    'stack_root': '/usr/old',
    'security_enabled': 'true',
    'user_group': 'hadoop',
}


@pytest.fixture
def seeded(add_cluster, add_stack_properties):
    add_stack_properties('HDP-2.6', HDP_26_CLUSTER_ENV)
    add_cluster('c1', configs={'cluster-env': dict(OLD_CLUSTER_ENV)})


class TestResetStackToolsAndFeatures:

    def test_resets_only_stack_properties(self, seeded, catalog, desired_properties):
        catalog.reset_stack_tools_and_features()

        assert desired_properties('c1', 'cluster-env') == {
            'stack_tools': '{"new": "tools"}',
            'stack_features': '{"new": "features"}',
            'stack_root': '/usr/hdp',
            # Not in the reset set: left alone even though the stack differs
            'security_enabled': 'true',
            'user_group': 'hadoop',
        }

    def test_creates_new_version_and_keeps_history(self, seeded, catalog, test_db):
        catalog.reset_stack_tools_and_features()

        versions = (
            test_db.query(ClusterConfigEntity)
            .filter(ClusterConfigEntity.type_name == 'cluster-env')
            .order_by(ClusterConfigEntity.version)
            .all()
        )
        assert [(v.version, v.selected) for v in versions] == [(1, 0), (2, 1)]
        assert versions[0].properties == OLD_CLUSTER_ENV

    def test_idempotent(self, seeded, catalog, desired_properties, test_db):
        catalog.reset_stack_tools_and_features()
        first = desired_properties('c1', 'cluster-env')

        catalog.reset_stack_tools_and_features()

        assert desired_properties('c1', 'cluster-env') == first
        assert test_db.query(ClusterConfigEntity).filter(
            ClusterConfigEntity.type_name == 'cluster-env').count() == 2

    def test_cluster_without_cluster_env_is_skipped(self, add_cluster, add_stack_properties,
                                                     catalog, desired_properties):
        add_stack_properties('HDP-2.6', HDP_26_CLUSTER_ENV)
        add_cluster('bare', configs={'hdfs-site': {'dfs.replication': '3'}})
        add_cluster('c2', configs={'cluster-env': {'stack_root': '/usr/old'}})

        catalog.reset_stack_tools_and_features()

        assert desired_properties('bare', 'cluster-env') is None
        assert desired_properties('c2', 'cluster-env')['stack_root'] == '/usr/hdp'

    def test_cluster_without_stack_properties_is_skipped(self, add_cluster, catalog,
                                                          desired_properties):
        add_cluster('c1', stack='UNKNOWN-1.0', configs={'cluster-env': {'stack_root': '/usr/old'}})

        catalog.reset_stack_tools_and_features()

        assert desired_properties('c1', 'cluster-env') == {'stack_root': '/usr/old'}

    def test_no_clusters(self, catalog):
        catalog.reset_stack_tools_and_features()
