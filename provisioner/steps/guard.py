"""Environment guard: privilege and required arguments, checked before any mutation."""

from __future__ import annotations

from provisioner.config.settings import ProvisioningConfig, Role
from provisioner.errors import PreconditionError
from provisioner.host import Host
from provisioner.results import StepResult


def resolve_role(value: str) -> Role:
    """Return the :class:`Role` for ``value`` or raise :class:`PreconditionError`."""

    try:
        return Role(value)
    except ValueError:
        shown = repr(value) if value else "nothing"
        raise PreconditionError(
            f"Role must be 'client' or 'server', got {shown}. "
            "Usage: main.py <client|server> <tcp_listen_port> <resolver> <domain> [nameserver_ip]"
        ) from None


def check_environment(config: ProvisioningConfig, host: Host) -> StepResult:
    if not host.is_privileged():
        raise PreconditionError(f"Run as root (sudo) on {host.description}.")

    role = resolve_role(config.role)

    missing = []
    if not config.network.domain:
        missing.append("domain")
    if role is Role.CLIENT:
        if not config.network.tcp_listen_port:
            missing.append("tcp_listen_port")
        if not config.network.resolver_address:
            missing.append("resolver")
    if missing:
        raise PreconditionError(f"Missing required argument(s) for role {role.value}: {', '.join(missing)}")

    return StepResult.succeeded("guard", f"role={role.value}")
