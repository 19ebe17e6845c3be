from state.kerberos.descriptor import (
    KerberosConfigurationDescriptor,
    KerberosDescriptor,
    KerberosDescriptorContainer,
    KerberosServiceDescriptor,
)
from state.kerberos.principal import DeconstructedPrincipal

__all__ = [
    'DeconstructedPrincipal',
    'KerberosConfigurationDescriptor',
    'KerberosDescriptor',
    'KerberosDescriptorContainer',
    'KerberosServiceDescriptor',
]
