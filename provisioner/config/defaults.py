"""Project-wide default values for the slipstream provisioner.

Every value here can be overridden through the environment variable of the
same concept (see :mod:`provisioner.config.settings`).
"""

DEFAULT_REPO_SSH = "git@github.com:Mygod/slipstream-rust.git"
DEFAULT_REPO_HTTPS = "https://github.com/Mygod/slipstream-rust.git"
DEFAULT_INSTALL_DIR = "/opt/slipstream-rust"

DEFAULT_CERT_DAYS = 365
CERT_FILENAME = "cert.pem"
KEY_FILENAME = "key.pem"

DEFAULT_CARGO_PROFILE = "release"
CLIENT_BINARY = "slipstream-client"
SERVER_BINARY = "slipstream-server"
CARGO_PACKAGES = (CLIENT_BINARY, SERVER_BINARY)
ARTIFACT_SEARCH_DEPTH = 3

DEFAULT_DNS_LISTEN_PORT = 53
DEFAULT_TARGET_ADDRESS = "127.0.0.1:22"

# tinyproxy (server role only)
DEFAULT_TINYPROXY_PORT = 8888
DEFAULT_TINYPROXY_LISTEN = "127.0.0.1"
TINYPROXY_PACKAGE = "tinyproxy"
TINYPROXY_SERVICE = "tinyproxy"
TINYPROXY_CONF = "/etc/tinyproxy/tinyproxy.conf"

# DNS
RESOLVER_SERVICE = "systemd-resolved"
RESOLV_CONF = "/etc/resolv.conf"
RESOLV_OPTIONS = "options edns0 trust-ad"

APT_PACKAGES = (
    "git",
    "ca-certificates",
    "curl",
    "openssl",
    "build-essential",
    "cmake",
    "make",
    "pkg-config",
    "libssl-dev",
)

RUSTUP_SCRIPT_URL = "https://sh.rustup.rs"
RUSTUP_DOWNLOAD_TIMEOUT = 60
RUST_TOOLCHAIN = "stable"

DEFAULT_LOG_DIR = "/var/log/slipstream-provision"
