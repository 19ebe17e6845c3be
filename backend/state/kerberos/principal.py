"""
Kerberos principal parsing.

A principal has the form primary[/instance][@REALM]. The "principal name"
is primary[/instance], i.e. everything except the realm.
"""

import re
from typing import Optional

# primary, optional /instance, optional @REALM (an empty realm is allowed)
PRINCIPAL_PATTERN = re.compile(r'^([^ /@]+)(?:/([^ /@]+))?(?:@(.+)?)?$')


class DeconstructedPrincipal:
    """A principal split into its primary, instance and realm components"""

    def __init__(self, primary: str, instance: Optional[str], realm: Optional[str]):
        self.primary = primary
        self.instance = instance
        self.realm = realm

    @classmethod
    def value_of(cls, principal: str, default_realm: Optional[str] = None) -> 'DeconstructedPrincipal':
        """
        Parse a principal string.

        Args:
            principal: Principal such as 'zeppelin@EXAMPLE.COM' or 'HTTP/host1@EXAMPLE.COM'
            default_realm: Realm to use when the principal carries none

        Raises:
            ValueError: If the principal is empty or malformed
        """
        if not principal:
            raise ValueError("The principal may not be empty")

        match = PRINCIPAL_PATTERN.match(principal)
        if match is None:
            raise ValueError(f"Invalid principal value: {principal}")

        primary, instance, realm = match.groups()
        return cls(primary, instance, realm or default_realm)

    @property
    def principal_name(self) -> str:
        if self.instance:
            return f"{self.primary}/{self.instance}"
        return self.primary

    @property
    def normalized_principal(self) -> str:
        if self.realm:
            return f"{self.principal_name}@{self.realm}"
        return self.principal_name

    def __repr__(self):
        return f"DeconstructedPrincipal({self.normalized_principal!r})"
