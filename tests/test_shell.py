"""Tests for shell execution helpers."""

import subprocess

import pytest

from throttler import CommandFailedError
from throttler.shell import check_sudo, run_command


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout, stderr)


class TestRunCommand:
    """Tests for run_command()."""

    def test_success(self, mocker):
        mock_run = mocker.patch("subprocess.run", return_value=completed(stdout="ok"))

        result = run_command(["tc", "qdisc", "show"], timeout=3)

        assert result.stdout == "ok"
        mock_run.assert_called_once_with(
            ["tc", "qdisc", "show"],
            input=None,
            capture_output=True,
            text=True,
            timeout=3,
        )

    def test_sudo_prefix(self, mocker):
        mock_run = mocker.patch("subprocess.run", return_value=completed())

        run_command(["tc", "qdisc", "del", "dev", "eth0", "root"], sudo=True)

        assert mock_run.call_args.args[0][:2] == ["sudo", "-n"]

    def test_input_text(self, mocker):
        mock_run = mocker.patch("subprocess.run", return_value=completed())

        run_command(["pfctl", "-f", "-"], input_text="anchor x\n")

        assert mock_run.call_args.kwargs["input"] == "anchor x\n"

    def test_non_zero_exit(self, mocker):
        mocker.patch("subprocess.run", return_value=completed(2, stderr="RTNETLINK answers: File exists\n"))

        with pytest.raises(CommandFailedError) as exc_info:
            run_command(["tc", "qdisc", "add", "dev", "eth0", "root", "netem"])

        assert exc_info.value.returncode == 2
        assert exc_info.value.stderr == "RTNETLINK answers: File exists"

    def test_non_zero_exit_unchecked(self, mocker):
        mocker.patch("subprocess.run", return_value=completed(2))

        result = run_command(["pfctl", "-E"], check=False)

        assert result.returncode == 2

    def test_timeout(self, mocker):
        mocker.patch(
            "subprocess.run", side_effect=subprocess.TimeoutExpired(cmd="tc", timeout=1)
        )

        with pytest.raises(CommandFailedError) as exc_info:
            run_command(["tc", "qdisc", "show"], timeout=1, check=False)

        assert "timed out" in str(exc_info.value)

    def test_missing_binary(self, mocker):
        mocker.patch("subprocess.run", side_effect=FileNotFoundError("No such file: 'dnctl'"))

        with pytest.raises(CommandFailedError):
            run_command(["dnctl", "pipe", "show"])


class TestCheckSudo:
    """Tests for check_sudo()."""

    def test_available(self, mocker):
        mocker.patch("subprocess.run", return_value=completed(0))

        assert check_sudo() is True

    def test_password_required(self, mocker):
        mocker.patch("subprocess.run", return_value=completed(1))

        assert check_sudo() is False

    def test_sudo_missing(self, mocker):
        mocker.patch("subprocess.run", side_effect=FileNotFoundError("sudo"))

        assert check_sudo() is False
