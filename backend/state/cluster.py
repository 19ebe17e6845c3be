"""
Cluster and configuration views over the database.

Cluster wraps a ClusterEntity and answers "what is the desired configuration
of type X" questions. ClusterRegistry lists every managed cluster.
"""

from typing import Dict, Optional

from sqlalchemy.orm import Session

from database import ClusterConfigEntity, ClusterEntity


class Config:
    """A single configuration version: a type plus its properties"""

    def __init__(self, entity: ClusterConfigEntity):
        self.entity = entity
        self.type = entity.type_name
        self.tag = entity.version_tag
        self.version = entity.version
        self._properties = entity.properties

    def get_properties(self) -> Dict[str, str]:
        """Return a copy of the property map"""
        return dict(self._properties)

    def __repr__(self):
        return f"Config(type={self.type!r}, tag={self.tag!r}, version={self.version})"


class Cluster:
    """A managed cluster and its desired configurations"""

    def __init__(self, session: Session, entity: ClusterEntity):
        self.session = session
        self.entity = entity

    @property
    def cluster_id(self) -> int:
        return self.entity.cluster_id

    @property
    def cluster_name(self) -> str:
        return self.entity.cluster_name

    @property
    def desired_stack(self) -> Optional[str]:
        return self.entity.desired_stack

    def get_desired_config_by_type(self, config_type: str) -> Optional[Config]:
        """Return the selected configuration of the given type, or None"""
        entity = (
            self.session.query(ClusterConfigEntity)
            .filter(
                ClusterConfigEntity.cluster_id == self.cluster_id,
                ClusterConfigEntity.type_name == config_type,
                ClusterConfigEntity.selected == 1,
            )
            .order_by(ClusterConfigEntity.version.desc())
            .first()
        )
        return Config(entity) if entity else None

    def get_desired_configs(self) -> Dict[str, Config]:
        entities = (
            self.session.query(ClusterConfigEntity)
            .filter(
                ClusterConfigEntity.cluster_id == self.cluster_id,
                ClusterConfigEntity.selected == 1,
            )
            .all()
        )
        return {entity.type_name: Config(entity) for entity in entities}

    def __repr__(self):
        return f"Cluster({self.cluster_name!r})"


class ClusterRegistry:
    """Lists the clusters managed by this server"""

    def __init__(self, session: Session):
        self.session = session

    def get_clusters(self) -> Dict[str, Cluster]:
        entities = self.session.query(ClusterEntity).order_by(ClusterEntity.cluster_id).all()
        return {entity.cluster_name: Cluster(self.session, entity) for entity in entities}

    def get_cluster(self, cluster_name: str) -> Optional[Cluster]:
        entity = (
            self.session.query(ClusterEntity)
            .filter(ClusterEntity.cluster_name == cluster_name)
            .first()
        )
        return Cluster(self.session, entity) if entity else None
