"""tinyproxy forward proxy for the server role."""

from __future__ import annotations

import re

from provisioner.config.defaults import TINYPROXY_CONF, TINYPROXY_PACKAGE, TINYPROXY_SERVICE
from provisioner.config.settings import ForwardProxyPolicy, ProvisioningConfig
from provisioner.errors import ForwardProxyError
from provisioner.host import Host, HostCommandError
from provisioner.logging_utils import get_logger
from provisioner.results import StepResult
from provisioner.steps.dependencies import apt_install

LOGGER = get_logger(__name__)

_PORT_LINE = re.compile(r"^#?Port .*$", re.MULTILINE)
_LISTEN_LINE = re.compile(r"^#?Listen .*$", re.MULTILINE)


def rewrite_tinyproxy_conf(text: str, policy: ForwardProxyPolicy) -> str:
    """Point every (possibly commented) ``Port``/``Listen`` line at ``policy``."""

    text = _PORT_LINE.sub(f"Port {policy.port}", text)
    return _LISTEN_LINE.sub(f"Listen {policy.listen_address}", text)


def proxy_target_address(policy: ForwardProxyPolicy) -> str:
    return f"127.0.0.1:{policy.port}"


def install_forward_proxy(
    config: ProvisioningConfig, host: Host, conf_path: str = TINYPROXY_CONF
) -> StepResult:
    policy = config.forward_proxy
    if not policy.enabled:
        return StepResult.skipped("forward-proxy", "INSTALL_TINYPROXY not set")

    LOGGER.info("Installing + configuring tinyproxy...")
    try:
        apt_install(host, [TINYPROXY_PACKAGE])
        host.write_text(conf_path, rewrite_tinyproxy_conf(host.read_text(conf_path), policy))
        host.run(["systemctl", "restart", TINYPROXY_SERVICE])
        host.run(["systemctl", "enable", TINYPROXY_SERVICE])
    except HostCommandError as exc:
        raise ForwardProxyError(f"tinyproxy setup failed: {exc}") from exc
    except OSError as exc:
        raise ForwardProxyError(f"cannot edit {conf_path}: {exc}") from exc

    target = proxy_target_address(policy)
    LOGGER.info("tinyproxy ready; TARGET_ADDRESS set to %s", target)
    return StepResult.succeeded("forward-proxy", f"target={target}", config=config.with_target_address(target))
