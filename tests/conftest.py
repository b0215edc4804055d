"""pytest 配置和共享 fixtures。pytest configuration and shared fixtures."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path, PurePosixPath
from typing import Generator, Mapping, Optional, Sequence

import pytest

# 添加项目根目录到路径，以便导入 provisioner 包
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from provisioner.config.settings import ProvisioningConfig, load_config
from provisioner.host import CommandResult, Host, LocalHost, PathLike

DEFAULT_TINYPROXY_CONF = """\
User tinyproxy
Group tinyproxy
Port 8888
#Listen 192.168.0.1
Timeout 600
"""


def make_executable(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\n", encoding="utf-8")
    path.chmod(0o755)


class FakeHost(Host):
    """模拟主机：记录命令，文件操作落在临时目录中。

    A host double that records every command, simulates the side effects of
    git/cargo/openssl/apt and maps absolute paths below ``root``.
    """

    description = "fakehost"

    def __init__(self, root: Path, *, privileged: bool = True):
        self.root = root
        self.privileged = privileged
        self.calls: list[dict] = []
        self.failures: dict[tuple[str, ...], tuple[int, str]] = {}
        self.available = {"git", "apt-get", "cargo", "rustup", "openssl", "systemctl", "sh"}
        self.path_entries: list[str] = []
        self.writes: list[str] = []
        self.simulate_build = True

    @property
    def commands(self) -> list[tuple[str, ...]]:
        return [call["argv"] for call in self.calls]

    def fail(self, *prefix: str, returncode: int = 1, stderr: str = "simulated failure") -> None:
        self.failures[tuple(prefix)] = (returncode, stderr)

    def local(self, path: PathLike) -> Path:
        posix = PurePosixPath(str(path))
        if posix.is_absolute():
            posix = posix.relative_to("/")
        return self.root / posix

    def execute(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[PathLike] = None,
        env: Optional[Mapping[str, str]] = None,
        input_text: Optional[str] = None,
        stream: bool = False,
    ) -> CommandResult:
        argv = tuple(argv)
        self.calls.append({"argv": argv, "cwd": cwd, "env": dict(env or {}), "input": input_text})
        for prefix, (code, stderr) in self.failures.items():
            if argv[: len(prefix)] == prefix:
                return CommandResult(argv, code, "", stderr)
        self._simulate(argv, cwd)
        return CommandResult(argv, 0)

    def _simulate(self, argv: tuple[str, ...], cwd: Optional[PathLike]) -> None:
        if argv[:2] == ("git", "clone"):
            (self.local(argv[3]) / ".git").mkdir(parents=True, exist_ok=True)
        elif argv[:2] == ("cargo", "build") and self.simulate_build:
            profile = "release" if "--release" in argv else "debug"
            for name in ("slipstream-client", "slipstream-server"):
                make_executable(self.local(cwd) / "target" / profile / name)
        elif argv[:2] == ("openssl", "req"):
            for flag in ("-keyout", "-out"):
                target = self.local(argv[argv.index(flag) + 1])
                target.write_text(f"generated {flag}\n", encoding="utf-8")
        elif argv[:2] == ("apt-get", "install") and "tinyproxy" in argv:
            conf = self.local("/etc/tinyproxy/tinyproxy.conf")
            if not conf.exists():
                conf.parent.mkdir(parents=True, exist_ok=True)
                conf.write_text(DEFAULT_TINYPROXY_CONF, encoding="utf-8")

    def is_privileged(self) -> bool:
        return self.privileged

    def which(self, name: str) -> Optional[PurePosixPath]:
        return PurePosixPath("/usr/bin") / name if name in self.available else None

    def home(self) -> PurePosixPath:
        return PurePosixPath("/root")

    def prepend_path(self, directory: PathLike) -> None:
        self.path_entries.insert(0, str(directory))

    def exists(self, path: PathLike) -> bool:
        return self.local(path).exists()

    def is_executable(self, path: PathLike) -> bool:
        local = self.local(path)
        return local.is_file() and os.access(local, os.X_OK)

    def read_text(self, path: PathLike) -> str:
        return self.local(path).read_text(encoding="utf-8")

    def write_text(self, path: PathLike, text: str) -> None:
        self.writes.append(str(path))
        local = self.local(path)
        local.parent.mkdir(parents=True, exist_ok=True)
        local.write_text(text, encoding="utf-8")

    def makedirs(self, path: PathLike) -> None:
        self.local(path).mkdir(parents=True, exist_ok=True)

    def find_executable(self, root: PathLike, name: str, max_depth: int) -> Optional[PurePosixPath]:
        found = LocalHost().find_executable(str(self.local(root)), name, max_depth)
        if found is None:
            return None
        return PurePosixPath("/") / Path(str(found)).relative_to(self.root).as_posix()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """临时目录 fixture。Temporary directory fixture."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def fake_host(temp_dir: Path) -> FakeHost:
    """模拟主机 fixture。Fake host fixture."""
    return FakeHost(temp_dir / "fs")


def build_config(role: str = "server", nameserver_ip: str = "", **env: str) -> ProvisioningConfig:
    """Build a configuration with resolver changes off unless ``env`` turns them on."""
    environ = {"DISABLE_SYSTEMD_RESOLVED": "0", "WRITE_RESOLV_CONF": "0"}
    environ.update(env)
    return load_config(role, "5201", "8.8.8.8:53", "t.example.com", nameserver_ip, environ=environ)


@pytest.fixture
def server_config() -> ProvisioningConfig:
    """服务端配置 fixture。Server role configuration fixture."""
    return build_config("server")


@pytest.fixture
def client_config() -> ProvisioningConfig:
    """客户端配置 fixture。Client role configuration fixture."""
    return build_config("client")
