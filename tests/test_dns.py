"""DNS 配置测试。Tests for the DNS reconfigurator."""

from __future__ import annotations

import pytest

from provisioner.config.settings import DnsPolicy
from provisioner.errors import ConfigurationError
from provisioner.results import StepOutcome
from provisioner.steps.dns import (
    disable_conflicting_resolver,
    render_resolv_conf,
    rewrite_resolver_config,
)


class TestDisableConflictingResolver:
    def test_skipped_when_flag_off(self, fake_host):
        result = disable_conflicting_resolver(DnsPolicy(False, False), fake_host)
        assert result.outcome is StepOutcome.SKIPPED
        assert fake_host.commands == []

    def test_stops_then_disables(self, fake_host):
        result = disable_conflicting_resolver(DnsPolicy(True, False), fake_host)
        assert result.outcome is StepOutcome.SUCCEEDED
        assert fake_host.commands == [
            ("systemctl", "stop", "systemd-resolved"),
            ("systemctl", "disable", "systemd-resolved"),
        ]

    def test_failure_is_not_fatal(self, fake_host):
        fake_host.fail("systemctl", "stop", returncode=5)
        result = disable_conflicting_resolver(DnsPolicy(True, False), fake_host)
        assert result.outcome is StepOutcome.FAILED_NON_FATAL
        assert "systemctl stop exited 5" in result.detail
        # disable is still attempted after a failed stop
        assert ("systemctl", "disable", "systemd-resolved") in fake_host.commands


class TestRewriteResolverConfig:
    def test_writes_two_lines(self, fake_host):
        result = rewrite_resolver_config(DnsPolicy(False, True, "10.0.0.53"), fake_host)
        assert result.outcome is StepOutcome.SUCCEEDED
        assert fake_host.read_text("/etc/resolv.conf") == "nameserver 10.0.0.53\noptions edns0 trust-ad\n"

    def test_full_overwrite_is_reapplicable(self, fake_host):
        fake_host.write_text("/etc/resolv.conf", "nameserver 127.0.0.53\nsearch lan\n")
        policy = DnsPolicy(False, True, "10.0.0.53")
        rewrite_resolver_config(policy, fake_host)
        rewrite_resolver_config(policy, fake_host)
        assert fake_host.read_text("/etc/resolv.conf") == render_resolv_conf("10.0.0.53")

    def test_missing_nameserver_is_fatal_and_writes_nothing(self, fake_host):
        with pytest.raises(ConfigurationError, match="nameserver_ip"):
            rewrite_resolver_config(DnsPolicy(False, True, None), fake_host)
        assert fake_host.writes == []
        assert not fake_host.exists("/etc/resolv.conf")

    def test_missing_nameserver_ignored_when_flag_off(self, fake_host):
        result = rewrite_resolver_config(DnsPolicy(False, False, None), fake_host)
        assert result.outcome is StepOutcome.SKIPPED
        assert fake_host.writes == []
