"""Outbound proxy settings for downloads made by the provisioner itself.

Only the rustup installer script is fetched from Python; git, apt and cargo
read the same environment variables on their own.
"""

from __future__ import annotations

import os
from typing import Dict, Mapping, Optional

_SUPPORTED_PROTOCOLS = ("http://", "https://", "socks5://", "socks4://")
_PRIORITY = ("ALL_PROXY", "HTTPS_PROXY", "HTTP_PROXY")


def _normalize_proxy_url(value: str) -> Optional[str]:
    """Return ``value`` with a protocol prefix, or ``None`` if it is blank."""

    value = value.strip()
    if not value:
        return None
    if value.lower().startswith(_SUPPORTED_PROTOCOLS):
        return value
    return f"http://{value}"


def _get_env_var_case_insensitive(environ: Mapping[str, str], name: str) -> Optional[str]:
    for candidate in (name, name.upper(), name.lower()):
        value = environ.get(candidate)
        if value and value.strip():
            return value.strip()

    name_upper = name.upper()
    for env_key, env_value in environ.items():
        if env_key.upper() == name_upper and env_value and env_value.strip():
            return env_value.strip()
    return None


def find_proxy_source(environ: Optional[Mapping[str, str]] = None) -> Optional[tuple[str, str]]:
    """Return ``(variable, url)`` of the proxy that applies, honoring ALL > HTTPS > HTTP."""

    env = os.environ if environ is None else environ
    for var_name in _PRIORITY:
        value = _get_env_var_case_insensitive(env, var_name)
        if value:
            normalized = _normalize_proxy_url(value)
            if normalized:
                return var_name, normalized
    return None


def get_proxy_config(environ: Optional[Mapping[str, str]] = None) -> Optional[Dict[str, str]]:
    """Return a ``requests``-style proxies mapping, or ``None`` when no proxy is set."""

    found = find_proxy_source(environ)
    if found is None:
        return None
    _, proxy_url = found
    return {"http": proxy_url, "https": proxy_url}


def log_proxy_status(logger, environ: Optional[Mapping[str, str]] = None) -> None:
    found = find_proxy_source(environ)
    if found is None:
        logger.debug("No proxy configured; downloading directly")
        return
    source_var, proxy_url = found
    logger.info("Using proxy %s (from %s)", proxy_url, source_var)
