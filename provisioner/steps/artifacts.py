"""Locate the built binaries: profile path first, bounded search second."""

from __future__ import annotations

from pathlib import PurePosixPath

from provisioner.config.defaults import ARTIFACT_SEARCH_DEPTH
from provisioner.config.settings import ProvisioningConfig
from provisioner.errors import ArtifactNotFoundError
from provisioner.host import Host
from provisioner.logging_utils import get_logger

LOGGER = get_logger(__name__)


def expected_binary_path(config: ProvisioningConfig, name: str) -> PurePosixPath:
    return config.target_dir / config.build_profile.value / name


def find_binary(config: ProvisioningConfig, host: Host, name: str) -> PurePosixPath:
    """Return an executable path for ``name`` or raise :class:`ArtifactNotFoundError`."""

    fixed = expected_binary_path(config, name)
    if host.is_executable(fixed):
        return fixed

    LOGGER.debug("%s not at %s; searching %s", name, fixed, config.target_dir)
    found = host.find_executable(config.target_dir, name, ARTIFACT_SEARCH_DEPTH)
    if found is None:
        raise ArtifactNotFoundError(
            name, f"{fixed} and {config.target_dir} (depth {ARTIFACT_SEARCH_DEPTH})"
        )
    LOGGER.info("Found %s at %s", name, found)
    return found
