"""
Packet-filter backend for macOS and FreeBSD using dummynet.

Traffic on the interface is sent through a dummynet pipe (dnctl) by rules
loaded into a dedicated pf anchor (pfctl).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from .config import ThrottlerConfig, coerce_config
from .exceptions import CommandFailedError
from .executor import Executor
from .results import Result

logger = logging.getLogger(__name__)


class PacketFilterExecutor(Executor):
    """
    Network throttling through dummynet pipes and a pf anchor.

    Dummynet supports bandwidth, delay and loss. Jitter, duplication and
    corruption are ignored with a warning.
    """

    name = "pf"
    required_commands = ("dnctl", "pfctl")

    def __init__(
        self,
        *args,
        anchor: str = "throttler",
        pipe: int = 1,
        pf_conf_path: str = "/etc/pf.conf",
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.anchor = anchor
        self.pipe = pipe
        self.pf_conf_path = Path(pf_conf_path)

    def build_pipe_config(self, conf: ThrottlerConfig) -> list[str]:
        """Build dnctl pipe configuration arguments."""
        params: list[str] = []

        if conf.bandwidth:
            params += ["bw", f"{conf.bandwidth}Kbit/s"]
        if conf.latency:
            params += ["delay", f"{conf.latency}ms"]
        if conf.packet_loss:
            # dummynet takes a loss rate in 0-1
            params += ["plr", f"{conf.packet_loss / 100.0:g}"]

        for field_name in ("jitter", "packet_duplication", "packet_corruption"):
            if getattr(conf, field_name):
                logger.warning(f"{field_name} is not supported by dummynet, ignoring")

        return params

    def build_anchor_rules(self, conf: ThrottlerConfig) -> str:
        device = conf.net_interface
        return (
            f"dummynet out on {device} all pipe {self.pipe}\n"
            f"dummynet in on {device} all pipe {self.pipe}\n"
        )

    def _base_ruleset(self) -> str:
        """Main ruleset with our anchor hooked in."""
        try:
            base = self.pf_conf_path.read_text()
        except OSError:
            logger.warning(f"Could not read {self.pf_conf_path}, using empty ruleset")
            base = ""
        if base and not base.endswith("\n"):
            base += "\n"
        return base + f'dummynet-anchor "{self.anchor}"\nanchor "{self.anchor}"\n'

    def start(self, config: ThrottlerConfig | Mapping[str, Any]) -> Result:
        conf = coerce_config(config)

        try:
            self._run("dnctl", "pipe", str(self.pipe), "config", *self.build_pipe_config(conf))
            self._run("pfctl", "-f", "-", input_text=self._base_ruleset())
            self._run("pfctl", "-a", self.anchor, "-f", "-", input_text=self.build_anchor_rules(conf))
            # fails when pf is already enabled
            self._run("pfctl", "-E", check=False)
        except CommandFailedError as e:
            logger.error(f"Failed to apply dummynet rules on {conf.net_interface}: {e}")
            self._flush()
            return Result.from_error(e)

        logger.info(f"Applied dummynet throttling on {conf.net_interface}")
        return Result.success(f"Throttling applied on {conf.net_interface}")

    def _flush(self) -> None:
        for cmd in (
            ("pfctl", "-a", self.anchor, "-F", "all"),
            ("dnctl", "pipe", str(self.pipe), "delete"),
        ):
            try:
                self._run(*cmd, check=False)
            except CommandFailedError as e:
                logger.warning(f"Cleanup command failed: {e}")

    def stop(self, config: ThrottlerConfig | Mapping[str, Any]) -> Result:
        conf = coerce_config(config)

        try:
            self._run("pfctl", "-a", self.anchor, "-F", "all")
            self._run("dnctl", "pipe", str(self.pipe), "delete")
        except CommandFailedError as e:
            logger.error(f"Failed to remove dummynet rules: {e}")
            return Result.from_error(e)

        logger.info(f"Removed dummynet throttling from {conf.net_interface}")
        return Result.success(f"Throttling removed from {conf.net_interface}")

    def list(self) -> Result:
        try:
            result = self._run("dnctl", "pipe", "show")
        except CommandFailedError as e:
            return Result.from_error(e)
        return Result.success(result.stdout)

    def exists(self) -> Result:
        listed = self.list()
        if not listed.ok:
            return listed
        # dnctl prints pipes as "00001: ..."
        prefix = f"{self.pipe:05d}:"
        if any(line.startswith(prefix) for line in (listed.message or "").splitlines()):
            return Result.success("Throttling rules are installed")
        return Result.failed("No throttling rules installed")
