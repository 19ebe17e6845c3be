"""
Database models for the cluster control plane.

Only the tables touched by the release upgrade steps are modelled here:
clusters, their versioned configurations, stack property definitions and
stored artifacts (Kerberos descriptors among them).

Note: the models describe the LATEST schema. Fresh installs use
Base.metadata.create_all(); existing databases reach the same schema via the
alembic revisions in alembic/versions/.
"""

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class ClusterEntity(Base):
    """A managed cluster"""
    __tablename__ = "clusters"

    cluster_id = Column(Integer, primary_key=True, autoincrement=True)
    cluster_name = Column(String(100), nullable=False, unique=True)
    desired_stack = Column(String(100), nullable=True)  # e.g. 'HDP-2.6'

    configs = relationship(
        "ClusterConfigEntity",
        back_populates="cluster",
        cascade="all, delete-orphan",
    )


class ClusterConfigEntity(Base):
    """
    One version of one configuration type for a cluster.

    Exactly one row per (cluster_id, type_name) has selected=1: the desired
    configuration. Older versions stay in the table as history.
    """
    __tablename__ = "clusterconfig"
    __table_args__ = (
        UniqueConstraint("cluster_id", "type_name", "version_tag", name="uq_config_type_tag"),
    )

    config_id = Column(Integer, primary_key=True, autoincrement=True)
    cluster_id = Column(Integer, ForeignKey("clusters.cluster_id", ondelete="CASCADE"), nullable=False)
    type_name = Column(String(100), nullable=False)
    version_tag = Column(String(100), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    config_data = Column(Text, nullable=False, default="{}")
    selected = Column(SmallInteger, nullable=False, default=0)
    create_timestamp = Column(DateTime, nullable=False, default=_utcnow)
    # Added in 2.5.2
    service_deleted = Column(SmallInteger, nullable=True, server_default="0", default=0)

    cluster = relationship("ClusterEntity", back_populates="configs")

    @property
    def properties(self) -> dict:
        return json.loads(self.config_data) if self.config_data else {}

    @properties.setter
    def properties(self, value: dict):
        self.config_data = json.dumps(value, sort_keys=True)


class StackPropertyEntity(Base):
    """A property definition shipped with a stack (e.g. HDP-2.6 cluster-env.xml)"""
    __tablename__ = "stack_properties"
    __table_args__ = (
        UniqueConstraint("stack", "filename", "property_name", name="uq_stack_property"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    stack = Column(String(100), nullable=False)
    filename = Column(String(255), nullable=True)
    property_name = Column(String(255), nullable=False)
    property_value = Column(Text, nullable=True)


class ArtifactEntity(Base):
    """A stored JSON document keyed by name and foreign keys"""
    __tablename__ = "artifact"

    artifact_name = Column(String(255), primary_key=True)
    foreign_keys = Column(String(255), primary_key=True)
    artifact_data = Column(Text, nullable=False)

    @property
    def data(self) -> Optional[dict]:
        return json.loads(self.artifact_data) if self.artifact_data else None

    @data.setter
    def data(self, value: dict):
        self.artifact_data = json.dumps(value)


class MetainfoEntity(Base):
    """Server key/value metadata ('version' holds the schema's release)"""
    __tablename__ = "metainfo"

    metainfo_key = Column(String(255), primary_key=True)
    metainfo_value = Column(String(255), nullable=True)
