"""Tests for the dummynet/pf backend."""

import pytest

from throttler import PacketFilterExecutor, ResultStatus, ThrottlerConfig


@pytest.fixture
def pf_conf(tmp_path):
    path = tmp_path / "pf.conf"
    path.write_text('scrub-anchor "com.apple/*"\nanchor "com.apple/*"')
    return path


@pytest.fixture
def executor(fake_runner, pf_conf):
    return PacketFilterExecutor(
        use_sudo=True,
        runner=fake_runner,
        sudo_check=lambda: True,
        which=lambda name: True,
        pf_conf_path=str(pf_conf),
    )


class TestPipeConfig:
    """Tests for dnctl argument building."""

    def test_full(self, executor):
        conf = ThrottlerConfig(latency=100, bandwidth=780, packet_loss=1)

        assert executor.build_pipe_config(conf) == [
            "bw", "780Kbit/s",
            "delay", "100ms",
            "plr", "0.01",
        ]

    def test_unsupported_fields_ignored(self, executor, caplog):
        conf = ThrottlerConfig(latency=10, jitter=5, packet_duplication=1, packet_loss=0)

        params = executor.build_pipe_config(conf)

        assert params == ["delay", "10ms"]
        assert "jitter is not supported" in caplog.text
        assert "packet_duplication is not supported" in caplog.text

    def test_anchor_rules(self, executor):
        rules = executor.build_anchor_rules(ThrottlerConfig(net_interface="en0"))

        assert rules == "dummynet out on en0 all pipe 1\ndummynet in on en0 all pipe 1\n"


class TestStartStop:
    """Tests for applying and removing rules."""

    def test_start(self, executor, fake_runner):
        conf = {"latency": 100, "bandwidth": 780, "packetLoss": 1, "netInterface": "en0"}

        res = executor.start(conf)

        assert res.ok
        assert fake_runner.joined == [
            "dnctl pipe 1 config bw 780Kbit/s delay 100ms plr 0.01",
            "pfctl -f -",
            "pfctl -a throttler -f -",
            "pfctl -E",
        ]
        base_ruleset = fake_runner.commands[1]["input"]
        assert base_ruleset.startswith('scrub-anchor "com.apple/*"\n')
        assert base_ruleset.endswith('dummynet-anchor "throttler"\nanchor "throttler"\n')
        assert fake_runner.commands[2]["input"] == executor.build_anchor_rules(
            ThrottlerConfig.from_dict(conf)
        )

    def test_start_without_pf_conf(self, fake_runner, tmp_path):
        executor = PacketFilterExecutor(
            runner=fake_runner, pf_conf_path=str(tmp_path / "missing.conf")
        )

        res = executor.start({"latency": 1, "bandwidth": 0, "packetLoss": 0, "netInterface": "en0"})

        assert res.ok
        assert fake_runner.commands[1]["input"] == 'dummynet-anchor "throttler"\nanchor "throttler"\n'

    def test_start_pf_enable_failure_ignored(self, executor, fake_runner):
        fake_runner.returncodes = {"pfctl -E": 1}

        res = executor.start({"latency": 1, "bandwidth": 0, "packetLoss": 0, "netInterface": "en0"})

        assert res.ok

    def test_start_failure_flushes(self, executor, fake_runner):
        fake_runner.returncodes = {"pfctl -a throttler -f": 1}
        fake_runner.stderr = "pfctl: Syntax error"

        res = executor.start({"latency": 1, "bandwidth": 0, "packetLoss": 0, "netInterface": "en0"})

        assert res.status == ResultStatus.FAILED
        assert "Syntax error" in res.message
        assert fake_runner.joined[-2:] == [
            "pfctl -a throttler -F all",
            "dnctl pipe 1 delete",
        ]

    def test_stop(self, executor, fake_runner):
        res = executor.stop({"netInterface": "en0"})

        assert res.ok
        assert fake_runner.joined == ["pfctl -a throttler -F all", "dnctl pipe 1 delete"]

    def test_stop_failure(self, executor, fake_runner):
        fake_runner.returncodes = {"dnctl pipe 1 delete": 1}
        fake_runner.stderr = "dnctl: pipe 1 not found"

        res = executor.stop({"netInterface": "en0"})

        assert res.status == ResultStatus.FAILED
        assert "not found" in res.message


class TestQueries:
    """Tests for list/exists."""

    def test_list(self, executor, fake_runner):
        fake_runner.stdout = "00001: 780.000 Kbit/s  100 ms  50 sl.plr 0.010000\n"

        res = executor.list()

        assert res.ok
        assert res.message == fake_runner.stdout

    def test_exists(self, executor, fake_runner):
        fake_runner.stdout = "00001: 780.000 Kbit/s  100 ms  50 sl.plr 0.010000\n"

        assert executor.exists().ok

    def test_not_exists(self, executor, fake_runner):
        fake_runner.stdout = ""

        assert executor.exists().status == ResultStatus.FAILED
