"""Pytest configuration and fixtures for throttler tests."""

import subprocess

import pytest

from throttler import (
    CommandFailedError,
    Executor,
    MemoryStatusStore,
    Result,
    ThrottlerController,
)

KNOWN_INTERFACES = {"eth0", "en0"}


class FakeExecutor(Executor):
    """Executor that records calls and returns preset results."""

    name = "fake"

    def __init__(self):
        super().__init__(use_sudo=False)
        self.calls = []
        self.start_result = Result.success("started")
        self.stop_result = Result.success("stopped")
        self.list_result = Result.success("qdisc netem 8001: root")
        self.exists_result = Result.success("installed")

    def start(self, config):
        self.calls.append(("start", config))
        return self.start_result

    def stop(self, config):
        self.calls.append(("stop", config))
        return self.stop_result

    def list(self):
        self.calls.append(("list", None))
        return self.list_result

    def exists(self):
        self.calls.append(("exists", None))
        return self.exists_result


class FakeRunner:
    """Stands in for run_command() and records every command."""

    def __init__(self):
        self.commands = []
        self.returncodes = {}
        self.stdout = ""
        self.stderr = ""
        self.raise_on = None

    def __call__(self, cmd, *, sudo=False, timeout=10.0, input_text=None, check=True):
        self.commands.append({"cmd": cmd, "sudo": sudo, "input": input_text})
        joined = " ".join(cmd)
        returncode = 0
        for fragment, code in self.returncodes.items():
            if fragment in joined:
                returncode = code
        if self.raise_on and self.raise_on in joined:
            raise CommandFailedError(joined, -1, "timed out after 10.0s")
        if check and returncode != 0:
            raise CommandFailedError(joined, returncode, self.stderr)
        return subprocess.CompletedProcess(cmd, returncode, self.stdout, self.stderr)

    @property
    def joined(self):
        return [" ".join(c["cmd"]) for c in self.commands]


@pytest.fixture
def valid_config():
    """A configuration that passes validation on the fake host."""
    return {
        "latency": 100,
        "jitter": 20,
        "bandwidth": 1000,
        "packetLoss": 1.5,
        "netInterface": "eth0",
    }


@pytest.fixture
def other_config():
    """A second valid configuration, used for restarts."""
    return {
        "latency": 300,
        "bandwidth": 240,
        "packetLoss": 0,
        "packetDuplication": 0.5,
        "netInterface": "en0",
    }


@pytest.fixture
def interface_exists():
    return lambda name: name in KNOWN_INTERFACES


@pytest.fixture
def fake_executor():
    return FakeExecutor()


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def memory_store():
    return MemoryStatusStore()


@pytest.fixture
def controller(memory_store, fake_executor, interface_exists):
    """Initialized controller with an in-memory store and fake executor."""
    ctrl = ThrottlerController(
        memory_store,
        platform_name="Linux",
        executor=fake_executor,
        interface_exists=interface_exists,
    )
    ctrl.init({"throttlerProfiles": [{"name": "3G", "latency": 100}]})
    return ctrl


@pytest.fixture
def sample_settings_yaml(tmp_path):
    """Create a temporary settings YAML file."""
    content = f"""
status_file: {tmp_path / "status.json"}
command_timeout: 5
use_sudo: false

throttler_profiles:
  - name: "3G"
    latency: 100
    jitter: 20
    bandwidth: 780
    packetLoss: 1

  - name: "ideal"
    latency: 0
    bandwidth: 0
    packetLoss: 0
"""
    settings_file = tmp_path / "throttler.yaml"
    settings_file.write_text(content)
    return str(settings_file)
