"""Module entry point so the provisioner runs with ``python -m provisioner``."""

from __future__ import annotations

from .cli import run

if __name__ == "__main__":  # pragma: no cover - module execution hook
    run()
