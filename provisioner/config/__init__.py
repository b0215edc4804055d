"""Configuration defaults and the provisioning configuration record."""

from .settings import (
    BuildProfile,
    CertConfig,
    DnsPolicy,
    ForwardProxyPolicy,
    NetworkConfig,
    ProvisioningConfig,
    Role,
    SourceRefs,
    load_config,
)

__all__ = [
    "BuildProfile",
    "CertConfig",
    "DnsPolicy",
    "ForwardProxyPolicy",
    "NetworkConfig",
    "ProvisioningConfig",
    "Role",
    "SourceRefs",
    "load_config",
]
