"""SSH 主机测试（不建立真实连接）。Tests for the SSH host without a network."""

from __future__ import annotations

from pathlib import PurePosixPath
from unittest.mock import MagicMock, patch

import paramiko
import pytest

from provisioner.errors import PreconditionError
from provisioner.ssh_host import SSHHost, SSHKeyLoadError, load_private_key


def _exec_result(stdout: bytes = b"", stderr: bytes = b"", status: int = 0):
    stdin = MagicMock()
    out = MagicMock()
    out.read.return_value = stdout
    out.channel.recv_exit_status.return_value = status
    err = MagicMock()
    err.read.return_value = stderr
    return stdin, out, err


@pytest.fixture
def ssh_client():
    client = MagicMock(spec=paramiko.SSHClient)
    with patch("provisioner.ssh_host.paramiko.SSHClient", return_value=client):
        yield client


class TestCompose:
    def test_quotes_arguments(self):
        host = SSHHost("203.0.113.7")
        command = host._compose(["openssl", "req", "-subj", "/CN=a b"], None, None)
        assert command == "openssl req -subj '/CN=a b'"

    def test_cwd_env_and_path(self):
        host = SSHHost("203.0.113.7")
        host.prepend_path(PurePosixPath("/root/.cargo/bin"))
        command = host._compose(["cargo", "build"], "/opt/slip", {"DEBIAN_FRONTEND": "noninteractive"})
        assert command == (
            'export PATH=/root/.cargo/bin:"$PATH" && cd /opt/slip && '
            "env DEBIAN_FRONTEND=noninteractive cargo build"
        )


class TestExecute:
    def test_runs_and_collects_output(self, ssh_client):
        ssh_client.exec_command.return_value = _exec_result(b"0\n")
        host = SSHHost("203.0.113.7")

        assert host.is_privileged() is True
        ssh_client.connect.assert_called_once()
        ssh_client.exec_command.assert_called_once_with("id -u")

    def test_input_is_written_to_stdin(self, ssh_client):
        stdin, out, err = _exec_result()
        ssh_client.exec_command.return_value = (stdin, out, err)

        SSHHost("203.0.113.7").run(["sh", "-s", "--", "-y"], input_text="echo hi\n")

        stdin.write.assert_called_once_with("echo hi\n")
        stdin.channel.shutdown_write.assert_called_once()

    def test_nonzero_exit(self, ssh_client):
        ssh_client.exec_command.return_value = _exec_result(stderr=b"E: locked", status=100)
        result = SSHHost("203.0.113.7").execute(["apt-get", "update"])
        assert result.returncode == 100
        assert result.stderr == "E: locked"

    def test_stream_logs_lines_as_they_arrive(self, ssh_client, caplog):
        stdin, out, err = _exec_result()
        logged = []

        def lines():
            yield "Compiling slipstream-core\n"
            logged.append(list(caplog.messages))
            yield "Finished release\n"

        out.__iter__.return_value = lines()
        ssh_client.exec_command.return_value = (stdin, out, err)

        with caplog.at_level("INFO", logger="slipstream"):
            result = SSHHost("203.0.113.7").execute(["cargo", "build"], stream=True)

        out.channel.set_combine_stderr.assert_called_once_with(True)
        out.read.assert_not_called()
        assert logged == [["[203.0.113.7] Compiling slipstream-core"]]
        assert result.stdout == "Compiling slipstream-core\nFinished release\n"

    def test_find_executable_uses_find(self, ssh_client):
        ssh_client.exec_command.return_value = _exec_result(b"/opt/slip/target/x/release/slipstream-client\n")
        found = SSHHost("h").find_executable("/opt/slip/target", "slipstream-client", 3)
        assert found == PurePosixPath("/opt/slip/target/x/release/slipstream-client")
        command = ssh_client.exec_command.call_args[0][0]
        assert "-maxdepth 3 -type f -name slipstream-client -perm -111" in command

    def test_authentication_failure(self, ssh_client):
        ssh_client.connect.side_effect = paramiko.AuthenticationException("denied")
        with pytest.raises(PreconditionError, match="authentication"):
            SSHHost("203.0.113.7").is_privileged()

    def test_close(self, ssh_client):
        ssh_client.exec_command.return_value = _exec_result(b"0\n")
        host = SSHHost("203.0.113.7")
        host.is_privileged()
        host.close()
        ssh_client.close.assert_called_once()


class TestLoadPrivateKey:
    def test_missing_file(self, temp_dir):
        with pytest.raises(SSHKeyLoadError, match="not found"):
            load_private_key(temp_dir / "id_ed25519")

    def test_directory(self, temp_dir):
        with pytest.raises(SSHKeyLoadError, match="directory"):
            load_private_key(temp_dir)

    def test_garbage_key(self, temp_dir):
        key = temp_dir / "id_rsa"
        key.write_text("not a key\n")
        with pytest.raises(SSHKeyLoadError, match="cannot parse"):
            load_private_key(key)
