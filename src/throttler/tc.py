"""
Traffic-control backend using Linux tc/netem.

Bandwidth caps use an HTB root with a netem leaf; without a cap netem is
installed as the root qdisc.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .config import ThrottlerConfig, coerce_config
from .exceptions import CommandFailedError
from .executor import Executor
from .results import Result

logger = logging.getLogger(__name__)

# tc stderr when there is no root qdisc to delete
_NOTHING_TO_DELETE = (
    "No such file or directory",
    "Cannot delete qdisc with handle of zero",
)


def build_netem_params(conf: ThrottlerConfig) -> list[str]:
    """Build netem arguments from a configuration."""
    params: list[str] = []

    if conf.latency or conf.jitter:
        params += ["delay", f"{conf.latency or 0}ms"]
        if conf.jitter:
            params.append(f"{conf.jitter}ms")

    if conf.packet_loss:
        params += ["loss", f"{conf.packet_loss}%"]

    if conf.packet_duplication:
        params += ["duplicate", f"{conf.packet_duplication}%"]

    if conf.packet_corruption:
        params += ["corrupt", f"{conf.packet_corruption}%"]

    return params


class TcExecutor(Executor):
    """
    Network throttling through Linux tc/netem.

    Example:
        >>> executor = TcExecutor()
        >>> executor.start({"latency": 100, "bandwidth": 1000,
        ...                 "packetLoss": 1, "netInterface": "eth0"}).ok
        True
    """

    name = "tc"
    required_commands = ("tc",)

    def start(self, config: ThrottlerConfig | Mapping[str, Any]) -> Result:
        conf = coerce_config(config)
        device = conf.net_interface

        # clear rules left behind by an earlier run
        self._teardown(device)

        try:
            if conf.bandwidth:
                self._apply_htb_netem(conf)
            else:
                self._apply_netem_only(conf)
        except CommandFailedError as e:
            logger.error(f"Failed to apply tc rules on {device}: {e}")
            self._teardown(device)
            return Result.from_error(e)

        logger.info(f"Applied tc throttling on {device}")
        return Result.success(f"Throttling applied on {device}")

    def _teardown(self, device: str) -> None:
        """Drop whatever part of the qdisc tree was created."""
        try:
            self._run("tc", "qdisc", "del", "dev", device, "root", check=False)
        except CommandFailedError as e:
            logger.warning(f"Cleanup of {device} failed: {e}")

    def _apply_netem_only(self, conf: ThrottlerConfig) -> None:
        """Apply netem rules without rate limiting."""
        params = build_netem_params(conf)
        if not params:
            # netem with no impairment still marks the interface as throttled
            params = ["delay", "0ms"]
        self._run("tc", "qdisc", "add", "dev", conf.net_interface, "root", "netem", *params)

    def _apply_htb_netem(self, conf: ThrottlerConfig) -> None:
        """Apply HTB rate limiting with netem impairments."""
        device = conf.net_interface
        rate = f"{conf.bandwidth}kbit"

        self._run("tc", "qdisc", "add", "dev", device, "root", "handle", "1:", "htb", "default", "11")
        self._run(
            "tc", "class", "add", "dev", device, "parent", "1:",
            "classid", "1:1", "htb", "rate", rate, "ceil", rate,
        )
        self._run(
            "tc", "class", "add", "dev", device, "parent", "1:1",
            "classid", "1:11", "htb", "rate", rate, "ceil", rate,
        )

        params = build_netem_params(conf)
        if params:
            self._run(
                "tc", "qdisc", "add", "dev", device, "parent", "1:11",
                "handle", "10:", "netem", *params,
            )

    def stop(self, config: ThrottlerConfig | Mapping[str, Any]) -> Result:
        conf = coerce_config(config)
        device = conf.net_interface

        try:
            result = self._run("tc", "qdisc", "del", "dev", device, "root", check=False)
        except CommandFailedError as e:
            logger.error(f"Failed to remove tc rules from {device}: {e}")
            return Result.from_error(e)

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            if not any(marker in stderr for marker in _NOTHING_TO_DELETE):
                logger.error(f"Failed to remove tc rules from {device}: {stderr}")
                return Result.failed(stderr or f"tc exited with {result.returncode}")
            logger.warning(f"No tc rules found on {device}")

        logger.info(f"Removed tc throttling from {device}")
        return Result.success(f"Throttling removed from {device}")

    def list(self) -> Result:
        try:
            result = self._run("tc", "qdisc", "show", sudo=False)
        except CommandFailedError as e:
            return Result.from_error(e)
        return Result.success(result.stdout)

    def exists(self) -> Result:
        listed = self.list()
        if not listed.ok:
            return listed
        if "netem" in (listed.message or ""):
            return Result.success("Throttling rules are installed")
        return Result.failed("No throttling rules installed")
