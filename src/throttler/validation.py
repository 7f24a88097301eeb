"""
Validation of throttling configurations.

validate_config() checks every field of a configuration and reports all
problems in one Failed result; it never raises and never mutates state.
"""

import logging
import math
import socket
from typing import Any, Callable, Mapping

from .config import ThrottlerConfig, coerce_config
from .exceptions import ValidationError
from .results import Result

logger = logging.getLogger(__name__)


def is_integer(value: Any, required: bool, non_negative: bool = False) -> bool:
    """Check an integer field. Integral floats are accepted, bools are not."""
    if value is None:
        return not required
    if isinstance(value, bool):
        return False
    if isinstance(value, float):
        if not value.is_integer():
            return False
    elif not isinstance(value, int):
        return False
    return value >= 0 if non_negative else True


def is_number(value: Any, required: bool, non_negative: bool = True) -> bool:
    """Check a numeric field (int or finite float, not bool)."""
    if value is None:
        return not required
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # ints are exact; only floats can be nan/inf
    if isinstance(value, float) and not math.isfinite(value):
        return False
    return value >= 0 if non_negative else True


def is_valid_network_interface(name: Any) -> bool:
    """
    Check that a network interface with this name exists on the host.

    Args:
        name: Interface name, e.g. "eth0" or "en0".

    Returns:
        True if the interface is known to the kernel.
    """
    if not isinstance(name, str) or not name:
        return False
    try:
        return any(if_name == name for _, if_name in socket.if_nameindex())
    except OSError as e:
        logger.error(f"Failed to list network interfaces: {e}")
        return False


def validate_config(
    config: "ThrottlerConfig | Mapping[str, Any]",
    interface_exists: Callable[[Any], bool] = is_valid_network_interface,
) -> Result:
    """
    Validate a throttling configuration.

    Args:
        config: Configuration to check.
        interface_exists: Predicate used for the network interface check.

    Returns:
        Success result, or a Failed result whose message lists every
        violated field.
    """
    conf = coerce_config(config)
    problems: list[str] = []

    if not is_integer(conf.latency, required=True, non_negative=True):
        problems.append("invalid latency (only integer)")
    # jitter sign is not restricted
    if not is_integer(conf.jitter, required=False):
        problems.append("invalid jitter (only integer)")
    if not is_integer(conf.bandwidth, required=True, non_negative=True):
        problems.append("invalid bandwidth (only integer)")
    if not is_number(conf.packet_loss, required=True):
        problems.append("invalid packets loss (only number)")
    if not is_number(conf.packet_duplication, required=False):
        problems.append("invalid packets duplication (only number)")
    if not is_number(conf.packet_corruption, required=False):
        problems.append("invalid packets corruption (only number)")
    if not interface_exists(conf.net_interface):
        problems.append(f"{conf.net_interface} is invalid network interface")

    if problems:
        return Result.from_error(ValidationError(problems))
    return Result.success()
