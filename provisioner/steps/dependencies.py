"""OS packages and the Rust toolchain."""

from __future__ import annotations

import requests

from provisioner.config.defaults import (
    APT_PACKAGES,
    RUST_TOOLCHAIN,
    RUSTUP_DOWNLOAD_TIMEOUT,
    RUSTUP_SCRIPT_URL,
)
from provisioner.errors import DependencyError
from provisioner.host import Host, HostCommandError
from provisioner.logging_utils import get_logger
from provisioner.proxy_utils import get_proxy_config, log_proxy_status
from provisioner.results import StepResult

LOGGER = get_logger(__name__)

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


def apt_install(host: Host, packages: list[str] | tuple[str, ...], *, no_recommends: bool = False) -> None:
    """Install ``packages`` with apt-get; raises :class:`HostCommandError` on failure."""

    argv = ["apt-get", "install", "-y"]
    if no_recommends:
        argv.append("--no-install-recommends")
    host.run([*argv, *packages], env=APT_ENV, stream=True)


def install_os_packages(host: Host) -> StepResult:
    LOGGER.info("Installing OS dependencies (apt)...")
    try:
        host.run(["apt-get", "update", "-y"], env=APT_ENV, stream=True)
        apt_install(host, APT_PACKAGES, no_recommends=True)
    except HostCommandError as exc:
        raise DependencyError(f"apt-get failed: {exc}") from exc
    return StepResult.succeeded("dependencies", " ".join(APT_PACKAGES))


def download_rustup_script(url: str = RUSTUP_SCRIPT_URL) -> str:
    """Fetch the rustup-init shell script, honoring ALL_PROXY/HTTPS_PROXY/HTTP_PROXY."""

    log_proxy_status(LOGGER)
    try:
        response = requests.get(url, proxies=get_proxy_config(), timeout=RUSTUP_DOWNLOAD_TIMEOUT)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise DependencyError(f"Cannot download rustup installer from {url}: {exc}") from exc
    return response.text


def ensure_rust_toolchain(host: Host) -> StepResult:
    """Install rustup if absent, expose ``~/.cargo/bin`` and select the stable toolchain."""

    cargo_bin = host.home() / ".cargo" / "bin"
    host.prepend_path(cargo_bin)

    installed = False
    if host.which("rustup") is None:
        LOGGER.info("Installing rustup...")
        script = download_rustup_script()
        try:
            host.run(["sh", "-s", "--", "-y"], input_text=script)
        except HostCommandError as exc:
            raise DependencyError(f"rustup installation failed: {exc}") from exc
        installed = True

    LOGGER.info("Setting Rust toolchain to %s...", RUST_TOOLCHAIN)
    try:
        host.run(["rustup", "default", RUST_TOOLCHAIN], stream=True)
    except HostCommandError as exc:
        raise DependencyError(f"rustup default {RUST_TOOLCHAIN} failed: {exc}") from exc

    detail = "rustup installed" if installed else "rustup already present"
    return StepResult.succeeded("toolchain", detail)
