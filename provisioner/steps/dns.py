"""Host DNS changes: stop the conflicting resolver service, then rewrite resolv.conf."""

from __future__ import annotations

from provisioner.config.defaults import RESOLV_CONF, RESOLV_OPTIONS, RESOLVER_SERVICE
from provisioner.config.settings import DnsPolicy
from provisioner.errors import ConfigurationError, ProvisionError
from provisioner.host import Host
from provisioner.logging_utils import get_logger
from provisioner.results import StepResult

LOGGER = get_logger(__name__)


def render_resolv_conf(nameserver_ip: str) -> str:
    return f"nameserver {nameserver_ip}\n{RESOLV_OPTIONS}\n"


def disable_conflicting_resolver(policy: DnsPolicy, host: Host, service: str = RESOLVER_SERVICE) -> StepResult:
    """Stop and disable ``service``; failures are reported, never raised."""

    if not policy.disable_conflicting_resolver:
        LOGGER.warning("Not disabling %s (set DISABLE_SYSTEMD_RESOLVED=1 to do it).", service)
        return StepResult.skipped("disable-resolver", "DISABLE_SYSTEMD_RESOLVED not set")

    LOGGER.info("Disabling %s (opt-in enabled)...", service)
    failures = []
    for action in ("stop", "disable"):
        result = host.run(["systemctl", action, service], check=False)
        if not result.ok:
            failures.append(f"systemctl {action} exited {result.returncode}")
    if failures:
        return StepResult.failed("disable-resolver", "; ".join(failures))
    return StepResult.succeeded("disable-resolver", service)


def rewrite_resolver_config(policy: DnsPolicy, host: Host, path: str = RESOLV_CONF) -> StepResult:
    if not policy.rewrite_resolver_config:
        LOGGER.warning("Not touching %s (set WRITE_RESOLV_CONF=1 to do it).", path)
        return StepResult.skipped("resolv-conf", "WRITE_RESOLV_CONF not set")

    if not policy.nameserver_ip:
        raise ConfigurationError("WRITE_RESOLV_CONF=1 needs the nameserver_ip argument")

    LOGGER.info("Writing %s (opt-in enabled) -> nameserver %s", path, policy.nameserver_ip)
    try:
        host.write_text(path, render_resolv_conf(policy.nameserver_ip))
    except OSError as exc:
        raise ProvisionError(f"cannot write {path}: {exc}") from exc
    return StepResult.succeeded("resolv-conf", f"nameserver {policy.nameserver_ip}")
