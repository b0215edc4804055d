"""Self-signed cert.pem/key.pem in the install dir."""

from __future__ import annotations

from provisioner.config.settings import ProvisioningConfig
from provisioner.errors import CertificateError
from provisioner.host import Host, HostCommandError
from provisioner.logging_utils import get_logger
from provisioner.results import StepResult

LOGGER = get_logger(__name__)


def openssl_argv(config: ProvisioningConfig) -> list[str]:
    return [
        "openssl",
        "req",
        "-x509",
        "-newkey",
        "rsa:2048",
        "-nodes",
        "-keyout",
        str(config.key_path),
        "-out",
        str(config.cert_path),
        "-days",
        str(config.cert.validity_days),
        "-subj",
        config.cert.subject,
    ]


def ensure_certificate(config: ProvisioningConfig, host: Host) -> StepResult:
    """Generate ``cert.pem``/``key.pem`` in the install dir unless either already exists.

    A lone key or lone certificate also counts as present and is left as is;
    the pair is never regenerated or repaired here.
    """

    LOGGER.info(
        "Generating self-signed cert/key in %s (%s, %s)...",
        config.install_dir,
        config.cert_path.name,
        config.key_path.name,
    )
    if host.exists(config.cert_path) or host.exists(config.key_path):
        LOGGER.warning("%s/%s already exist; skipping.", config.cert_path.name, config.key_path.name)
        return StepResult.skipped("certificate", "existing cert.pem or key.pem kept")

    try:
        host.run(openssl_argv(config), cwd=config.install_dir)
    except HostCommandError as exc:
        raise CertificateError(f"openssl failed to create a self-signed certificate: {exc}") from exc
    return StepResult.succeeded("certificate", f"subject={config.cert.subject} days={config.cert.validity_days}")
