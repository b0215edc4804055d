"""Top-level provisioning state machine.

Steps run strictly in order; the first :class:`ProvisionError` moves the run
to :attr:`Stage.ABORTED` and is re-raised to the caller. Retries and fallbacks
live inside the steps that need them, never here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePosixPath
from typing import Callable, Optional

from provisioner.config.defaults import CLIENT_BINARY, SERVER_BINARY
from provisioner.config.settings import ProvisioningConfig, Role
from provisioner.errors import ProvisionError
from provisioner.host import Host
from provisioner.logging_utils import get_logger
from provisioner.results import StepOutcome, StepResult
from provisioner.steps import artifacts, build, certs, dependencies, dns, forward_proxy, guard, source, summary

LOGGER = get_logger(__name__)


class Stage(str, Enum):
    PENDING = "pending"
    GUARDED = "guarded"
    DEPS_INSTALLED = "deps-installed"
    TOOLCHAIN_READY = "toolchain-ready"
    SOURCE_READY = "source-ready"
    BUILT = "built"
    CERT_READY = "cert-ready"
    PROXY_READY = "proxy-ready"
    DNS_CONFIGURED = "dns-configured"
    ARTIFACTS_LOCATED = "artifacts-located"
    REPORTED = "reported"
    ABORTED = "aborted"


@dataclass
class ProvisionReport:
    config: ProvisioningConfig
    client_bin: PurePosixPath
    server_bin: PurePosixPath
    summary: str
    steps: list[StepResult] = field(default_factory=list)


class Provisioner:
    """Run every provisioning step for ``config`` against ``host``.

    ``on_guarded`` is called once the environment guard has passed, before
    the first step that changes the host.
    """

    def __init__(
        self,
        config: ProvisioningConfig,
        host: Host,
        on_guarded: Optional[Callable[[], None]] = None,
    ):
        self.config = config
        self.host = host
        self.on_guarded = on_guarded
        self.stage = Stage.PENDING
        self.steps: list[StepResult] = []
        self.error: Optional[ProvisionError] = None

    def _record(self, result: StepResult) -> None:
        self.steps.append(result)
        message = f"{result.name}: {result.outcome.value}"
        if result.detail:
            message = f"{message} ({result.detail})"
        if result.outcome is StepOutcome.FAILED_NON_FATAL:
            LOGGER.warning(message)
        else:
            LOGGER.debug(message)
        if result.config is not None:
            self.config = result.config

    def _advance(self, stage: Stage) -> None:
        self.stage = stage
        LOGGER.debug("stage -> %s", stage.value)

    def run(self) -> ProvisionReport:
        try:
            return self._run()
        except ProvisionError as exc:
            self.error = exc
            self._advance(Stage.ABORTED)
            raise

    def _run(self) -> ProvisionReport:
        self._record(guard.check_environment(self.config, self.host))
        self._advance(Stage.GUARDED)
        if self.on_guarded is not None:
            self.on_guarded()

        self._record(dependencies.install_os_packages(self.host))
        self._advance(Stage.DEPS_INSTALLED)

        self._record(dependencies.ensure_rust_toolchain(self.host))
        self._advance(Stage.TOOLCHAIN_READY)

        self._record(source.acquire_source(self.config, self.host))
        self._advance(Stage.SOURCE_READY)

        self._record(build.build_binaries(self.config, self.host))
        self._advance(Stage.BUILT)

        self._record(certs.ensure_certificate(self.config, self.host))
        self._advance(Stage.CERT_READY)

        if Role(self.config.role) is Role.SERVER:
            self._record(forward_proxy.install_forward_proxy(self.config, self.host))
            self._advance(Stage.PROXY_READY)

        # The resolver service rewrites resolv.conf on restart, so it has to go first.
        self._record(dns.disable_conflicting_resolver(self.config.dns, self.host))
        self._record(dns.rewrite_resolver_config(self.config.dns, self.host))
        self._advance(Stage.DNS_CONFIGURED)

        client_bin = artifacts.find_binary(self.config, self.host, CLIENT_BINARY)
        server_bin = artifacts.find_binary(self.config, self.host, SERVER_BINARY)
        self._advance(Stage.ARTIFACTS_LOCATED)

        LOGGER.info("Install complete.")
        text = summary.render_summary(self.config, client_bin, server_bin)
        self._advance(Stage.REPORTED)
        return ProvisionReport(self.config, client_bin, server_bin, text, list(self.steps))
