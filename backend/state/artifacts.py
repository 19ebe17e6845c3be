"""Artifact storage (Kerberos descriptors and other JSON documents)"""

from typing import List

from sqlalchemy.orm import Session

from database import ArtifactEntity

KERBEROS_DESCRIPTOR_ARTIFACT = 'kerberos_descriptor'


class ArtifactStore:

    def __init__(self, session: Session):
        self.session = session

    def find_by_name(self, artifact_name: str) -> List[ArtifactEntity]:
        return (
            self.session.query(ArtifactEntity)
            .filter(ArtifactEntity.artifact_name == artifact_name)
            .order_by(ArtifactEntity.foreign_keys)
            .all()
        )

    def merge(self, artifact: ArtifactEntity) -> ArtifactEntity:
        merged = self.session.merge(artifact)
        self.session.flush()
        return merged
