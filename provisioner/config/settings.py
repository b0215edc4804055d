"""Provisioning configuration record and its environment loader."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import PurePosixPath
from typing import Mapping, Optional

from provisioner.config.defaults import (
    CERT_FILENAME,
    DEFAULT_CARGO_PROFILE,
    DEFAULT_CERT_DAYS,
    DEFAULT_DNS_LISTEN_PORT,
    DEFAULT_INSTALL_DIR,
    DEFAULT_REPO_HTTPS,
    DEFAULT_REPO_SSH,
    DEFAULT_TARGET_ADDRESS,
    DEFAULT_TINYPROXY_LISTEN,
    DEFAULT_TINYPROXY_PORT,
    KEY_FILENAME,
)
from provisioner.errors import ConfigurationError


class Role(str, Enum):
    """Which half of the tunnel this host runs."""

    CLIENT = "client"
    SERVER = "server"


class BuildProfile(str, Enum):
    """Cargo profile; also names the ``target/<profile>`` output directory."""

    RELEASE = "release"
    DEBUG = "debug"


@dataclass(frozen=True)
class SourceRefs:
    ssh_url: str
    https_url: str


@dataclass(frozen=True)
class CertConfig:
    subject: str
    validity_days: int


@dataclass(frozen=True)
class NetworkConfig:
    """Values handed to the built binaries verbatim."""

    tcp_listen_port: str
    resolver_address: str
    domain: str
    dns_listen_port: str
    target_address: str


@dataclass(frozen=True)
class DnsPolicy:
    disable_conflicting_resolver: bool
    rewrite_resolver_config: bool
    nameserver_ip: Optional[str] = None


@dataclass(frozen=True)
class ForwardProxyPolicy:
    enabled: bool
    port: int
    listen_address: str


@dataclass(frozen=True)
class ProvisioningConfig:
    """Everything a provisioning run needs, resolved before any side effect.

    ``role`` is kept as the raw operator string; the environment guard is
    the single place that decides whether it is valid.
    """

    role: str
    install_dir: PurePosixPath
    source_refs: SourceRefs
    build_profile: BuildProfile
    cert: CertConfig
    network: NetworkConfig
    dns: DnsPolicy
    forward_proxy: ForwardProxyPolicy

    @property
    def cert_path(self) -> PurePosixPath:
        return self.install_dir / CERT_FILENAME

    @property
    def key_path(self) -> PurePosixPath:
        return self.install_dir / KEY_FILENAME

    @property
    def target_dir(self) -> PurePosixPath:
        return self.install_dir / "target"

    def with_target_address(self, target_address: str) -> "ProvisioningConfig":
        """Return a copy whose network target points at ``target_address``."""

        return replace(self, network=replace(self.network, target_address=target_address))


def _flag(environ: Mapping[str, str], key: str, default: bool) -> bool:
    value = environ.get(key)
    if value is None:
        return default
    return value.strip() == "1"


def _parse_int(value: str, *, source: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigurationError(f"{source} must be an integer, got {value!r}") from exc


def _parse_port(value: str, *, source: str) -> int:
    port = _parse_int(value, source=source)
    if not 1 <= port <= 65535:
        raise ConfigurationError(f"{source}={port} is outside the valid port range (1-65535)")
    return port


def _parse_profile(value: str) -> BuildProfile:
    try:
        return BuildProfile(value.strip())
    except ValueError as exc:
        choices = ", ".join(profile.value for profile in BuildProfile)
        raise ConfigurationError(f"CARGO_PROFILE must be one of {choices}, got {value!r}") from exc


def load_config(
    role: Optional[str],
    tcp_listen_port: Optional[str] = None,
    resolver_address: Optional[str] = None,
    domain: Optional[str] = None,
    nameserver_ip: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ProvisioningConfig:
    """Build a :class:`ProvisioningConfig` from positional arguments and env overrides."""

    env = os.environ if environ is None else environ
    domain = domain or ""

    cert_days = _parse_int(env.get("CERT_DAYS", str(DEFAULT_CERT_DAYS)), source="CERT_DAYS")
    if cert_days <= 0:
        raise ConfigurationError(f"CERT_DAYS must be positive, got {cert_days}")

    return ProvisioningConfig(
        role=(role or "").strip(),
        install_dir=PurePosixPath(env.get("INSTALL_DIR", DEFAULT_INSTALL_DIR)),
        source_refs=SourceRefs(
            ssh_url=env.get("REPO_SSH", DEFAULT_REPO_SSH),
            https_url=env.get("REPO_HTTPS", DEFAULT_REPO_HTTPS),
        ),
        build_profile=_parse_profile(env.get("CARGO_PROFILE", DEFAULT_CARGO_PROFILE)),
        cert=CertConfig(
            subject=env.get("CERT_SUBJ", f"/CN={domain}"),
            validity_days=cert_days,
        ),
        network=NetworkConfig(
            tcp_listen_port=tcp_listen_port or "",
            resolver_address=resolver_address or "",
            domain=domain,
            dns_listen_port=env.get("DNS_LISTEN_PORT", str(DEFAULT_DNS_LISTEN_PORT)),
            target_address=env.get("TARGET_ADDRESS", DEFAULT_TARGET_ADDRESS),
        ),
        dns=DnsPolicy(
            disable_conflicting_resolver=_flag(env, "DISABLE_SYSTEMD_RESOLVED", True),
            rewrite_resolver_config=_flag(env, "WRITE_RESOLV_CONF", True),
            nameserver_ip=(nameserver_ip or "").strip() or None,
        ),
        forward_proxy=ForwardProxyPolicy(
            enabled=_flag(env, "INSTALL_TINYPROXY", False),
            port=_parse_port(
                env.get("TINYPROXY_PORT", str(DEFAULT_TINYPROXY_PORT)), source="TINYPROXY_PORT"
            ),
            listen_address=env.get("TINYPROXY_LISTEN", DEFAULT_TINYPROXY_LISTEN),
        ),
    )
