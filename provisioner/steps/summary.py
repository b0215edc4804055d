"""Role-specific usage instructions printed after a successful run."""

from __future__ import annotations

from pathlib import PurePosixPath

from provisioner.config.settings import ProvisioningConfig, Role


def render_summary(
    config: ProvisioningConfig,
    client_bin: PurePosixPath,
    server_bin: PurePosixPath,
) -> str:
    net = config.network
    if Role(config.role) is Role.CLIENT:
        lines = [
            "Run client:",
            f"  {client_bin} --tcp-listen-port {net.tcp_listen_port} "
            f"--resolver {net.resolver_address} --domain {net.domain}",
            "",
            "Your tunnel/ssh example:",
            f"  ssh -L 0.0.0.0:1080:localhost:{net.tcp_listen_port} root@<CLIENT_IP>",
            f"  ssh -p {net.tcp_listen_port} user@127.0.0.1",
        ]
    else:
        lines = [
            "Run server:",
            f"  {server_bin} --dns-listen-port {net.dns_listen_port} "
            f"--target-address {net.target_address} --domain {net.domain} "
            f"--cert {config.cert_path} --key {config.key_path}",
            "",
            "Note: binding to DNS port 53 requires root (or CAP_NET_BIND_SERVICE).",
        ]
    return "\n".join(lines)
