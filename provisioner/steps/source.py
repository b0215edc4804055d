"""Source acquisition: fast-forward update or SSH→HTTPS clone, then submodules."""

from __future__ import annotations

from provisioner.config.settings import ProvisioningConfig
from provisioner.errors import AcquisitionError
from provisioner.host import Host, HostCommandError
from provisioner.logging_utils import get_logger
from provisioner.results import StepResult

LOGGER = get_logger(__name__)

# Never wait on a credential or host-key prompt; an unreachable ref must fail fast.
GIT_ENV = {
    "GIT_TERMINAL_PROMPT": "0",
    "GIT_SSH_COMMAND": "ssh -o BatchMode=yes -o StrictHostKeyChecking=accept-new",
}


def _update_checkout(config: ProvisioningConfig, host: Host) -> str:
    LOGGER.warning("Repo exists; pulling latest...")
    try:
        host.run(["git", "-C", str(config.install_dir), "pull", "--ff-only"], env=GIT_ENV, stream=True)
    except HostCommandError as exc:
        raise AcquisitionError(
            f"Fast-forward update of {config.install_dir} failed; resolve the local history by hand: {exc}"
        ) from exc
    return "updated"


def _clone(config: ProvisioningConfig, host: Host) -> str:
    parent = config.install_dir.parent
    try:
        host.makedirs(parent)
    except OSError as exc:
        raise AcquisitionError(f"cannot create {parent}: {exc}") from exc
    refs = config.source_refs
    primary = host.run(
        ["git", "clone", refs.ssh_url, str(config.install_dir)], env=GIT_ENV, stream=True, check=False
    )
    if primary.ok:
        return f"cloned {refs.ssh_url}"

    LOGGER.warning("SSH clone failed; trying HTTPS...")
    try:
        host.run(["git", "clone", refs.https_url, str(config.install_dir)], env=GIT_ENV, stream=True)
    except HostCommandError as exc:
        raise AcquisitionError(
            f"Cannot clone from {refs.ssh_url} or {refs.https_url}: {exc}"
        ) from exc
    return f"cloned {refs.https_url}"


def acquire_source(config: ProvisioningConfig, host: Host) -> StepResult:
    LOGGER.info("Cloning/updating repo in %s...", config.install_dir)
    if host.exists(config.install_dir / ".git"):
        detail = _update_checkout(config, host)
    else:
        detail = _clone(config, host)

    LOGGER.info("Initializing submodules...")
    try:
        host.run(
            ["git", "-C", str(config.install_dir), "submodule", "update", "--init", "--recursive"],
            env=GIT_ENV,
            stream=True,
        )
    except HostCommandError as exc:
        raise AcquisitionError(f"Submodule update failed: {exc}") from exc
    return StepResult.succeeded("source", detail)
