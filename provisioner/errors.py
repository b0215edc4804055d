"""Exception hierarchy for fatal provisioning failures."""

from __future__ import annotations


class ProvisionError(RuntimeError):
    """Base class for every failure that aborts a provisioning run."""


class PreconditionError(ProvisionError):
    """Raised when privilege or required arguments are missing before any mutation."""


class ConfigurationError(ProvisionError):
    """Raised when an environment override or flag combination is invalid."""


class DependencyError(ProvisionError):
    """Raised when OS packages or the Rust toolchain cannot be installed."""


class AcquisitionError(ProvisionError):
    """Raised when the source checkout cannot be cloned, updated or completed."""


class BuildError(ProvisionError):
    """Raised when ``cargo build`` fails."""


class CertificateError(ProvisionError):
    """Raised when the self-signed certificate cannot be generated."""


class ForwardProxyError(ProvisionError):
    """Raised when tinyproxy cannot be installed or configured."""


class ArtifactNotFoundError(ProvisionError):
    """Raised when a built binary cannot be located on disk."""

    def __init__(self, binary: str, searched: str):
        super().__init__(f"Could not find built {binary} (searched {searched})")
        self.binary = binary
        self.searched = searched
