"""
Configuration helper: stack property lookups and versioned config writes.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Set

from sqlalchemy import func
from sqlalchemy.orm import Session

from database import ClusterConfigEntity, StackPropertyEntity
from state.cluster import Cluster, Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StackPropertyInfo:
    """A property as defined by a stack definition file"""
    filename: Optional[str]
    name: str
    value: Optional[str]


class ConfigHelper:
    """Reads stack definitions and writes new configuration versions"""

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def file_name_to_config_type(filename: str) -> str:
        """Map a stack definition filename to its config type ('cluster-env.xml' -> 'cluster-env')"""
        if filename.endswith('.xml'):
            return filename[:-len('.xml')]
        return filename

    def get_stack_properties(self, cluster: Cluster) -> Optional[Set[StackPropertyInfo]]:
        """
        Return the properties defined by the cluster's desired stack.

        Returns None if the cluster has no desired stack or the stack defines
        no properties.
        """
        if not cluster.desired_stack:
            return None

        rows = (
            self.session.query(StackPropertyEntity)
            .filter(StackPropertyEntity.stack == cluster.desired_stack)
            .all()
        )
        if not rows:
            return None

        return {
            StackPropertyInfo(row.filename, row.property_name, row.property_value)
            for row in rows
        }

    def update_config_type(self, cluster: Cluster, config_type: str,
                           properties: Dict[str, str]) -> Config:
        """
        Persist a new desired version of a configuration type.

        The previously selected version is kept as history (selected=0).
        Changes are flushed, not committed.
        """
        current_version = (
            self.session.query(func.max(ClusterConfigEntity.version))
            .filter(
                ClusterConfigEntity.cluster_id == cluster.cluster_id,
                ClusterConfigEntity.type_name == config_type,
            )
            .scalar()
        ) or 0

        (
            self.session.query(ClusterConfigEntity)
            .filter(
                ClusterConfigEntity.cluster_id == cluster.cluster_id,
                ClusterConfigEntity.type_name == config_type,
                ClusterConfigEntity.selected == 1,
            )
            .update({ClusterConfigEntity.selected: 0}, synchronize_session='fetch')
        )

        new_version = current_version + 1
        entity = ClusterConfigEntity(
            cluster_id=cluster.cluster_id,
            type_name=config_type,
            version_tag=f"version{new_version}",
            version=new_version,
            selected=1,
        )
        entity.properties = properties
        self.session.add(entity)
        self.session.flush()

        logger.debug(f"Created {config_type} version {new_version} for cluster {cluster.cluster_name}")
        return Config(entity)
