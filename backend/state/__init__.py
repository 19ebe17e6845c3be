from state.artifacts import KERBEROS_DESCRIPTOR_ARTIFACT, ArtifactStore
from state.cluster import Cluster, ClusterRegistry, Config
from state.config_helper import ConfigHelper, StackPropertyInfo

__all__ = [
    'KERBEROS_DESCRIPTOR_ARTIFACT',
    'ArtifactStore',
    'Cluster',
    'ClusterRegistry',
    'Config',
    'ConfigHelper',
    'StackPropertyInfo',
]
