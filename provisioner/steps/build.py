"""Compile the client and server binaries with cargo."""

from __future__ import annotations

from provisioner.config.defaults import CARGO_PACKAGES
from provisioner.config.settings import BuildProfile, ProvisioningConfig
from provisioner.errors import BuildError
from provisioner.host import Host, HostCommandError
from provisioner.logging_utils import get_logger
from provisioner.results import StepResult

LOGGER = get_logger(__name__)


def cargo_build_argv(profile: BuildProfile) -> list[str]:
    argv = ["cargo", "build"]
    for package in CARGO_PACKAGES:
        argv.extend(["-p", package])
    if profile is BuildProfile.RELEASE:
        argv.append("--release")
    return argv


def build_binaries(config: ProvisioningConfig, host: Host) -> StepResult:
    LOGGER.info(
        "Building %s (cargo, profile=%s)...", " and ".join(CARGO_PACKAGES), config.build_profile.value
    )
    try:
        host.run(cargo_build_argv(config.build_profile), cwd=config.install_dir, stream=True)
    except HostCommandError as exc:
        raise BuildError(f"cargo build failed: {exc}") from exc
    return StepResult.succeeded("build", f"profile={config.build_profile.value}")
