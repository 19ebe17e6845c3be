"""
Shared pytest fixtures for the upgrade tests.

Fixtures provided:
- test_db: Temporary SQLite database session (latest schema)
- db_engine: Temporary SQLite engine for tests that manage their own sessions
- add_cluster: Factory creating a cluster with desired configurations
- add_stack_properties: Factory seeding stack property definitions
- add_artifact: Factory storing a JSON artifact
- catalog: UpgradeCatalog252 wired to the test_db session
"""

import pytest


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (run real alembic migrations)")


import tempfile
import os
import json
import logging
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from database import Base, ArtifactEntity, ClusterConfigEntity, ClusterEntity, StackPropertyEntity
from state import ArtifactStore, ClusterRegistry, ConfigHelper
from upgrade.catalog_252 import UpgradeCatalog252

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(engine):
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def test_db():
    """
    Create a temporary SQLite database for testing.

    Yields a session on the latest schema. The database file is removed
    afterwards so tests don't affect each other.
    """
    db_fd, db_path = tempfile.mkstemp(suffix='.db')
    engine = create_engine(f'sqlite:///{db_path}')
    _enable_sqlite_foreign_keys(engine)

    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture(scope="function")
def db_engine():
    """
    Create a temporary SQLite database engine with NO tables.

    Used by schema tests that build their own (older) tables.
    """
    db_fd, db_path = tempfile.mkstemp(suffix='.db')
    engine = create_engine(f'sqlite:///{db_path}')
    _enable_sqlite_foreign_keys(engine)

    yield engine

    engine.dispose()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def temp_db_path(tmp_path):
    """Path for a database file that does not exist yet"""
    return str(tmp_path / "data" / "server.db")


# =============================================================================
# Data Factories
# =============================================================================

@pytest.fixture
def add_cluster(test_db):
    """
    Factory creating a cluster with one desired version per config type.

    Usage:
        add_cluster('c1', stack='HDP-2.6', configs={'cluster-env': {'a': 'b'}})
    """
    def _add_cluster(name, stack='HDP-2.6', configs=None):
        cluster = ClusterEntity(cluster_name=name, desired_stack=stack)
        test_db.add(cluster)
        test_db.flush()

        for config_type, properties in (configs or {}).items():
            config = ClusterConfigEntity(
                cluster_id=cluster.cluster_id,
                type_name=config_type,
                version_tag='version1',
                version=1,
                selected=1,
            )
            config.properties = properties
            test_db.add(config)

        test_db.commit()
        return cluster

    return _add_cluster


@pytest.fixture
def add_stack_properties(test_db):
    """
    Factory seeding stack property definitions.

    Usage:
        add_stack_properties('HDP-2.6', [('cluster-env.xml', 'stack_root', '/usr/hdp')])
    """
    def _add(stack, rows):
        for filename, name, value in rows:
            test_db.add(StackPropertyEntity(
                stack=stack, filename=filename, property_name=name, property_value=value))
        test_db.commit()

    return _add


@pytest.fixture
def add_artifact(test_db):
    """Factory storing a JSON artifact"""
    def _add(name, data, foreign_keys=None):
        artifact = ArtifactEntity(
            artifact_name=name,
            foreign_keys=json.dumps(foreign_keys or {'cluster': '1'}),
            artifact_data=json.dumps(data),
        )
        test_db.add(artifact)
        test_db.commit()
        return artifact

    return _add


@pytest.fixture
def catalog(test_db):
    """UpgradeCatalog252 wired to the test database"""
    return UpgradeCatalog252(
        ClusterRegistry(test_db),
        ConfigHelper(test_db),
        ArtifactStore(test_db),
    )


@pytest.fixture
def desired_properties(test_db):
    """Read the desired properties of a config type for a cluster (None if absent)"""
    def _get(cluster_name, config_type):
        cluster = ClusterRegistry(test_db).get_cluster(cluster_name)
        config = cluster.get_desired_config_by_type(config_type)
        return config.get_properties() if config else None

    return _get
