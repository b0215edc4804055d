"""Provision a host as a slipstream-rust tunnel client or server.

The :mod:`provisioner.orchestrator` module runs the ordered steps found in
:mod:`provisioner.steps` against a :class:`provisioner.host.Host`, either the
local machine or a remote one reached over SSH.
"""

__version__ = "0.1.0"
