#!/usr/bin/env python3
"""Provision this host (or ``--ssh-host``) as a slipstream-rust client or server.

Usage::

    sudo python3 main.py client <tcp_listen_port> <resolver> <domain> [nameserver_ip]
    sudo python3 main.py server <tcp_listen_port> <resolver> <domain> [nameserver_ip]
"""

from __future__ import annotations

import sys

if sys.version_info < (3, 10):
    raise SystemExit("Python 3.10 or newer is required; run this with python3.")

from provisioner.cli import main

if __name__ == "__main__":
    sys.exit(main())
