"""
Kerberos descriptor object model.

A Kerberos descriptor is stored as a JSON artifact shaped like:

    {
        "properties": {...},
        "identities": [...],
        "configurations": [{"core-site": {"prop": "value"}}],
        "services": [
            {
                "name": "SPARK",
                "identities": [...],
                "configurations": [{"livy-conf": {"livy.superusers": "..."}}],
                "components": [...]
            }
        ]
    }

The classes here are thin views over that map. Mutating a configuration's
properties mutates the underlying document, so to_dict() returns the
document with every key we do not model left exactly as it was loaded.
"""

import copy
from typing import Dict, List, Optional


class KerberosConfigurationDescriptor:
    """The properties a descriptor sets on one configuration type"""

    def __init__(self, config_type: str, properties: Dict[str, str]):
        self.type = config_type
        self.properties = properties

    def remove_property(self, name: str) -> bool:
        """Remove a property, returning True if it was present"""
        if name in self.properties:
            del self.properties[name]
            return True
        return False


class KerberosDescriptorContainer:
    """A named node that may declare configurations (the root or a service)"""

    def __init__(self, name: Optional[str], data: dict):
        self.name = name
        self._data = data

    def _configuration_entries(self) -> List[dict]:
        entries = self._data.get('configurations')
        return entries if isinstance(entries, list) else []

    @property
    def configurations(self) -> Dict[str, KerberosConfigurationDescriptor]:
        result = {}
        for entry in self._configuration_entries():
            if not isinstance(entry, dict):
                continue
            for config_type, properties in entry.items():
                if isinstance(properties, dict):
                    result[config_type] = KerberosConfigurationDescriptor(config_type, properties)
        return result

    def get_configuration(self, config_type: str) -> Optional[KerberosConfigurationDescriptor]:
        return self.configurations.get(config_type)


class KerberosServiceDescriptor(KerberosDescriptorContainer):
    pass


class KerberosDescriptor(KerberosDescriptorContainer):
    """Root of a Kerberos descriptor document"""

    def __init__(self, data: dict):
        super().__init__(None, data)

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional['KerberosDescriptor']:
        """Build a descriptor from artifact data, or None if there is nothing to build from"""
        if not data:
            return None
        if not isinstance(data, dict):
            raise ValueError(f"Kerberos descriptor data must be a map, got {type(data).__name__}")
        return cls(copy.deepcopy(data))

    @property
    def properties(self) -> Dict[str, str]:
        return self._data.get('properties') or {}

    @property
    def services(self) -> Dict[str, KerberosServiceDescriptor]:
        result = {}
        for entry in self._data.get('services') or []:
            if isinstance(entry, dict) and entry.get('name'):
                result[entry['name']] = KerberosServiceDescriptor(entry['name'], entry)
        return result

    def get_service(self, name: str) -> Optional[KerberosServiceDescriptor]:
        return self.services.get(name)

    def to_dict(self) -> dict:
        return copy.deepcopy(self._data)
