"""Execution targets for provisioning steps.

Every step talks to the machine being provisioned through a :class:`Host`:
commands, existence checks, config-file edits and the artifact search. The
local implementation is backed by :mod:`subprocess` and :mod:`pathlib`; the
SSH implementation lives in :mod:`provisioner.ssh_host`.
"""

from __future__ import annotations

import abc
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Mapping, Optional, Sequence

from provisioner.logging_utils import get_logger

LOGGER = get_logger(__name__)

PathLike = str | PurePosixPath
_SUBPROCESS_TEXT_KWARGS = {"text": True, "encoding": "utf-8", "errors": "replace"}


@dataclass
class CommandResult:
    """Outcome of one command executed on a host."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def command(self) -> str:
        return " ".join(self.argv)


class HostCommandError(RuntimeError):
    """Raised by :meth:`Host.run` when ``check`` is set and the command fails."""

    def __init__(self, result: CommandResult):
        err_tail = (result.stderr or result.stdout)[-600:].strip()
        message = f"command failed with exit code {result.returncode}: {result.command}"
        if err_tail:
            message = f"{message}\n{err_tail}"
        super().__init__(message)
        self.result = result


class Host(abc.ABC):
    """Operations the provisioning steps need from the target machine."""

    description = "host"

    @abc.abstractmethod
    def execute(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[PathLike] = None,
        env: Optional[Mapping[str, str]] = None,
        input_text: Optional[str] = None,
        stream: bool = False,
    ) -> CommandResult:
        """Run ``argv`` and return its result without raising on failure."""

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[PathLike] = None,
        env: Optional[Mapping[str, str]] = None,
        input_text: Optional[str] = None,
        stream: bool = False,
        check: bool = True,
    ) -> CommandResult:
        LOGGER.debug("$ %s", " ".join(argv))
        result = self.execute(argv, cwd=cwd, env=env, input_text=input_text, stream=stream)
        if check and not result.ok:
            raise HostCommandError(result)
        return result

    @abc.abstractmethod
    def is_privileged(self) -> bool: ...

    @abc.abstractmethod
    def which(self, name: str) -> Optional[PurePosixPath]: ...

    @abc.abstractmethod
    def home(self) -> PurePosixPath: ...

    @abc.abstractmethod
    def prepend_path(self, directory: PathLike) -> None:
        """Make ``directory`` searched first by later :meth:`run` and :meth:`which` calls."""

    @abc.abstractmethod
    def exists(self, path: PathLike) -> bool: ...

    @abc.abstractmethod
    def is_executable(self, path: PathLike) -> bool: ...

    @abc.abstractmethod
    def read_text(self, path: PathLike) -> str: ...

    @abc.abstractmethod
    def write_text(self, path: PathLike, text: str) -> None: ...

    @abc.abstractmethod
    def makedirs(self, path: PathLike) -> None: ...

    @abc.abstractmethod
    def find_executable(
        self, root: PathLike, name: str, max_depth: int
    ) -> Optional[PurePosixPath]:
        """Return the first executable file called ``name`` at most ``max_depth`` levels below ``root``."""

    def close(self) -> None:
        """Release any connection held by the host."""


class LocalHost(Host):
    """Provision the machine this process runs on."""

    description = "localhost"

    def __init__(self) -> None:
        self._extra_path: list[str] = []

    def _search_path(self) -> str:
        return os.pathsep.join([*self._extra_path, os.environ.get("PATH", os.defpath)])

    def execute(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[PathLike] = None,
        env: Optional[Mapping[str, str]] = None,
        input_text: Optional[str] = None,
        stream: bool = False,
    ) -> CommandResult:
        merged_env = dict(os.environ)
        if env:
            merged_env.update(env)
        merged_env["PATH"] = self._search_path()
        executable = shutil.which(argv[0], path=merged_env["PATH"]) or argv[0]
        try:
            completed = subprocess.run(
                [executable, *argv[1:]],
                cwd=str(cwd) if cwd is not None else None,
                env=merged_env,
                input=input_text,
                stdout=None if stream else subprocess.PIPE,
                stderr=None if stream else subprocess.PIPE,
                check=False,
                **_SUBPROCESS_TEXT_KWARGS,
            )
        except FileNotFoundError as exc:
            return CommandResult(tuple(argv), 127, "", f"{argv[0]}: {exc.strerror}")
        return CommandResult(
            tuple(argv), completed.returncode, completed.stdout or "", completed.stderr or ""
        )

    def is_privileged(self) -> bool:
        return os.geteuid() == 0

    def which(self, name: str) -> Optional[PurePosixPath]:
        found = shutil.which(name, path=self._search_path())
        return PurePosixPath(found) if found else None

    def home(self) -> PurePosixPath:
        return PurePosixPath(str(Path.home()))

    def prepend_path(self, directory: PathLike) -> None:
        entry = str(directory)
        if entry not in self._extra_path:
            self._extra_path.insert(0, entry)

    def exists(self, path: PathLike) -> bool:
        return os.path.lexists(str(path))

    def is_executable(self, path: PathLike) -> bool:
        return os.path.isfile(str(path)) and os.access(str(path), os.X_OK)

    def read_text(self, path: PathLike) -> str:
        return Path(str(path)).read_text(encoding="utf-8")

    def write_text(self, path: PathLike, text: str) -> None:
        Path(str(path)).write_text(text, encoding="utf-8")

    def makedirs(self, path: PathLike) -> None:
        Path(str(path)).mkdir(parents=True, exist_ok=True)

    def find_executable(
        self, root: PathLike, name: str, max_depth: int
    ) -> Optional[PurePosixPath]:
        root_path = Path(str(root))
        if not root_path.is_dir():
            return None
        base_depth = len(root_path.parts)
        for dirpath, dirnames, filenames in os.walk(root_path):
            # Depth of the entries listed in ``dirpath``, counted like find(1) -maxdepth.
            depth = len(Path(dirpath).parts) - base_depth + 1
            dirnames.sort()
            if depth >= max_depth:
                dirnames[:] = []
            if name in filenames:
                candidate = os.path.join(dirpath, name)
                if self.is_executable(candidate):
                    return PurePosixPath(candidate)
        return None
