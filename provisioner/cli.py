"""Command-line entry point: ``slipstream-provision <client|server> ...``."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Callable, Optional, Sequence

from provisioner.config.defaults import DEFAULT_LOG_DIR
from provisioner.config.settings import load_config
from provisioner.errors import ProvisionError
from provisioner.host import Host, LocalHost
from provisioner.logging_utils import attach_file_handler, get_logger, setup_logging
from provisioner.orchestrator import Provisioner

LOGGER = get_logger("cli")

ENV_HELP = """\
environment overrides:
  REPO_SSH, REPO_HTTPS, INSTALL_DIR, CERT_SUBJ, CERT_DAYS, CARGO_PROFILE,
  DNS_LISTEN_PORT, TARGET_ADDRESS, INSTALL_TINYPROXY, TINYPROXY_PORT,
  TINYPROXY_LISTEN, DISABLE_SYSTEMD_RESOLVED, WRITE_RESOLV_CONF,
  PROVISION_LOG_DIR
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slipstream-provision",
        description="Install and build slipstream-rust as a tunnel client or server.",
        epilog=ENV_HELP,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("role", nargs="?", default="", help="client or server")
    parser.add_argument("tcp_listen_port", nargs="?", default="", help="client TCP listen port")
    parser.add_argument("resolver", nargs="?", default="", help="resolver address used by the client")
    parser.add_argument("domain", nargs="?", default="", help="tunnel domain")
    parser.add_argument(
        "nameserver_ip",
        nargs="?",
        default="",
        help="nameserver written to /etc/resolv.conf when WRITE_RESOLV_CONF=1",
    )
    parser.add_argument(
        "--log-dir",
        default=os.environ.get("PROVISION_LOG_DIR", DEFAULT_LOG_DIR),
        help="directory for the provisioning log file",
    )
    parser.add_argument("--no-log-file", action="store_true", help="log to the console only")
    parser.add_argument("--verbose", "-v", action="store_true", help="show debug output")

    remote = parser.add_argument_group("remote target")
    remote.add_argument("--ssh-host", help="provision this host over SSH instead of localhost")
    remote.add_argument("--ssh-user", default="root")
    remote.add_argument("--ssh-port", type=int, default=22)
    remote.add_argument("--ssh-key", help="private key file (default: agent / ~/.ssh keys)")
    return parser


def _make_host(args: argparse.Namespace) -> Host:
    if not args.ssh_host:
        return LocalHost()
    from provisioner.ssh_host import SSHHost

    return SSHHost(args.ssh_host, username=args.ssh_user, port=args.ssh_port, key_path=args.ssh_key)


def _file_logging(log_dir: str) -> Callable[[], None]:
    def attach() -> None:
        try:
            attach_file_handler(log_dir)
        except OSError as exc:
            LOGGER.warning("Cannot write log file in %s (%s); logging to console only", log_dir, exc)

    return attach


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    # The log file is a host change too; it waits for the guard.
    setup_logging(None, verbose=args.verbose)
    on_guarded = None if args.no_log_file else _file_logging(args.log_dir)

    host: Optional[Host] = None
    try:
        config = load_config(
            args.role,
            args.tcp_listen_port,
            args.resolver,
            args.domain,
            args.nameserver_ip,
        )
        host = _make_host(args)
        report = Provisioner(config, host, on_guarded=on_guarded).run()
    except ProvisionError as exc:
        headline, _, details = str(exc).partition("\n")
        LOGGER.error("%s", headline)
        if details:
            LOGGER.debug("%s", details)
        return 1
    finally:
        if host is not None:
            host.close()

    print()
    print(report.summary)
    return 0


def run() -> None:
    sys.exit(main())
