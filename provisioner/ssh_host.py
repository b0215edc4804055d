"""Provision a remote machine over SSH with Paramiko."""

from __future__ import annotations

import shlex
import socket
import stat
from pathlib import Path, PurePosixPath
from typing import Mapping, Optional, Sequence

import paramiko

from provisioner.errors import PreconditionError, ProvisionError
from provisioner.host import CommandResult, Host, PathLike
from provisioner.logging_utils import get_logger

LOGGER = get_logger(__name__)


class SSHKeyLoadError(ProvisionError):
    """Raised when a private key cannot be parsed."""


def _candidate_keys() -> tuple[type[paramiko.PKey], ...]:
    """Supported Paramiko key classes in preferred order."""

    return (paramiko.Ed25519Key, paramiko.ECDSAKey, paramiko.RSAKey)


def load_private_key(path: str | Path) -> paramiko.PKey:
    """Load a private key from ``path``, trying Ed25519 → ECDSA → RSA."""

    key_path = Path(path).expanduser()
    if key_path.is_dir():
        raise SSHKeyLoadError(f"private key path is a directory: {key_path}")
    if not key_path.exists():
        raise SSHKeyLoadError(f"private key file not found: {key_path}")

    errors: list[str] = []
    for key_cls in _candidate_keys():
        try:
            return key_cls.from_private_key_file(str(key_path))
        except paramiko.PasswordRequiredException as exc:
            raise SSHKeyLoadError(
                f"private key {key_path} is passphrase protected; unlock it or use ssh-agent"
            ) from exc
        except paramiko.SSHException as exc:
            errors.append(str(exc))

    joined = "; ".join(filter(None, errors)) or "unknown error"
    raise SSHKeyLoadError(f"cannot parse private key {key_path}: {joined}")


class SSHHost(Host):
    """Run every provisioning operation on ``username@hostname``."""

    def __init__(
        self,
        hostname: str,
        *,
        username: str = "root",
        port: int = 22,
        key_path: Optional[str] = None,
        timeout: int = 30,
    ):
        self.hostname = hostname
        self.username = username
        self.port = port
        self.key_path = key_path
        self.timeout = timeout
        self.description = f"{username}@{hostname}:{port}"
        self._client: Optional[paramiko.SSHClient] = None
        self._sftp: Optional[paramiko.SFTPClient] = None
        self._extra_path: list[str] = []
        self._home: Optional[PurePosixPath] = None

    def _connect(self) -> paramiko.SSHClient:
        if self._client is not None:
            return self._client

        pkey = load_private_key(self.key_path) if self.key_path else None
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            client.connect(
                self.hostname,
                port=self.port,
                username=self.username,
                pkey=pkey,
                allow_agent=pkey is None,
                look_for_keys=pkey is None,
                timeout=self.timeout,
                banner_timeout=self.timeout,
                auth_timeout=self.timeout,
            )
        except paramiko.AuthenticationException as exc:
            raise PreconditionError(
                f"SSH authentication to {self.description} failed; check the key or agent"
            ) from exc
        except (paramiko.SSHException, socket.error) as exc:
            raise PreconditionError(f"cannot open SSH connection to {self.description}: {exc}") from exc

        transport = client.get_transport()
        if transport is not None:
            transport.set_keepalive(30)
        LOGGER.debug("Connected to %s", self.description)
        self._client = client
        return client

    def _sftp_client(self) -> paramiko.SFTPClient:
        if self._sftp is None:
            self._sftp = self._connect().open_sftp()
        return self._sftp

    def _compose(
        self,
        argv: Sequence[str],
        cwd: Optional[PathLike],
        env: Optional[Mapping[str, str]],
    ) -> str:
        parts: list[str] = []
        if self._extra_path:
            joined = ":".join(shlex.quote(entry) for entry in self._extra_path)
            parts.append(f'export PATH={joined}:"$PATH"')
        if cwd is not None:
            parts.append(f"cd {shlex.quote(str(cwd))}")
        command = shlex.join(argv)
        if env:
            assignments = " ".join(f"{key}={shlex.quote(value)}" for key, value in env.items())
            command = f"env {assignments} {command}"
        parts.append(command)
        return " && ".join(parts)

    def execute(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[PathLike] = None,
        env: Optional[Mapping[str, str]] = None,
        input_text: Optional[str] = None,
        stream: bool = False,
    ) -> CommandResult:
        client = self._connect()
        stdin, stdout, stderr = client.exec_command(self._compose(argv, cwd, env))
        if input_text is not None:
            stdin.write(input_text)
        stdin.channel.shutdown_write()
        if stream:
            stdout.channel.set_combine_stderr(True)
            lines = []
            for line in stdout:
                if isinstance(line, bytes):
                    line = line.decode("utf-8", errors="replace")
                lines.append(line)
                LOGGER.info("[%s] %s", self.hostname, line.rstrip("\n"))
            out = "".join(lines)
        else:
            out = stdout.read().decode("utf-8", errors="replace")
        err = stderr.read().decode("utf-8", errors="replace")
        exit_status = stdout.channel.recv_exit_status()
        return CommandResult(tuple(argv), exit_status, out, err)

    def _shell(self, script: str) -> CommandResult:
        return self.execute(["sh", "-c", script])

    def is_privileged(self) -> bool:
        result = self.execute(["id", "-u"])
        return result.ok and result.stdout.strip() == "0"

    def which(self, name: str) -> Optional[PurePosixPath]:
        result = self.execute(["sh", "-c", f"command -v {shlex.quote(name)}"])
        found = result.stdout.strip()
        return PurePosixPath(found) if result.ok and found else None

    def home(self) -> PurePosixPath:
        if self._home is None:
            self._home = PurePosixPath(self._sftp_client().normalize("."))
        return self._home

    def prepend_path(self, directory: PathLike) -> None:
        entry = str(directory)
        if entry not in self._extra_path:
            self._extra_path.insert(0, entry)

    def exists(self, path: PathLike) -> bool:
        try:
            self._sftp_client().lstat(str(path))
        except FileNotFoundError:
            return False
        return True

    def is_executable(self, path: PathLike) -> bool:
        return self._shell(f"test -f {shlex.quote(str(path))} && test -x {shlex.quote(str(path))}").ok

    def read_text(self, path: PathLike) -> str:
        with self._sftp_client().open(str(path), "r") as handle:
            return handle.read().decode("utf-8")

    def write_text(self, path: PathLike, text: str) -> None:
        with self._sftp_client().open(str(path), "w") as handle:
            handle.write(text.encode("utf-8"))

    def makedirs(self, path: PathLike) -> None:
        sftp = self._sftp_client()
        current = PurePosixPath("/") if PurePosixPath(str(path)).is_absolute() else PurePosixPath()
        for part in PurePosixPath(str(path)).parts:
            current = current / part
            try:
                attrs = sftp.stat(str(current))
            except FileNotFoundError:
                sftp.mkdir(str(current), mode=0o755)
                continue
            if not stat.S_ISDIR(attrs.st_mode or 0):
                raise NotADirectoryError(str(current))

    def find_executable(
        self, root: PathLike, name: str, max_depth: int
    ) -> Optional[PurePosixPath]:
        script = (
            f"find {shlex.quote(str(root))} -maxdepth {int(max_depth)} -type f "
            f"-name {shlex.quote(name)} -perm -111 2>/dev/null | head -n 1"
        )
        found = self._shell(script).stdout.strip()
        return PurePosixPath(found) if found else None

    def close(self) -> None:
        if self._sftp is not None:
            self._sftp.close()
            self._sftp = None
        if self._client is not None:
            self._client.close()
            self._client = None
