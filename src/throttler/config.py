"""
Configuration types for throttler.

Defines the ThrottlerConfig dataclass describing one set of network
conditions, the ThrottlerStatus states, and the ThrottlerSettings loaded
from the YAML settings file.
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

import yaml

from .exceptions import SettingsLoadError

logger = logging.getLogger(__name__)

STATUS_FILE_ENV = "THROTTLER_STATUS_FILE"
DEFAULT_STATUS_FILE = "conf/throttler_status.json"

# python attribute -> persisted/wire key
_WIRE_KEYS = {
    "latency": "latency",
    "jitter": "jitter",
    "bandwidth": "bandwidth",
    "packet_loss": "packetLoss",
    "packet_duplication": "packetDuplication",
    "packet_corruption": "packetCorruption",
    "net_interface": "netInterface",
}


class ThrottlerStatus(str, Enum):
    """Lifecycle state of the throttler."""

    UNINITIALIZED = "Uninitialized"
    INITIALIZED = "Initialized"
    STARTED = "Started"
    STOPPED = "Stopped"


@dataclass(frozen=True)
class ThrottlerConfig:
    """
    Network conditions to apply to one interface.

    Values are kept exactly as supplied; validate_config() decides whether
    they are acceptable before anything is applied.

    Attributes:
        latency: Added delay in milliseconds (required, >= 0).
        jitter: Delay variation in milliseconds (optional, any integer).
        bandwidth: Bandwidth cap in kbit/s (required, >= 0, 0 = no cap).
        packet_loss: Packet loss percentage (required, >= 0).
        packet_duplication: Packet duplication percentage (optional, >= 0).
        packet_corruption: Packet corruption percentage (optional, >= 0).
        net_interface: Host network interface to shape.
    """

    latency: Optional[int] = None
    jitter: Optional[int] = None
    bandwidth: Optional[int] = None
    packet_loss: Optional[float] = None
    packet_duplication: Optional[float] = None
    packet_corruption: Optional[float] = None
    net_interface: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ThrottlerConfig":
        """
        Create a ThrottlerConfig from a dictionary.

        Both the persisted camelCase keys ("packetLoss") and the
        attribute names ("packet_loss") are accepted.

        Example:
            >>> conf = ThrottlerConfig.from_dict({"latency": 100, "packetLoss": 1.5})
            >>> conf.packet_loss
            1.5
        """
        values = {}
        for attr, wire in _WIRE_KEYS.items():
            if wire in data:
                values[attr] = data[wire]
            elif attr in data:
                values[attr] = data[attr]
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted key layout, omitting unset fields."""
        return {
            wire: getattr(self, attr)
            for attr, wire in _WIRE_KEYS.items()
            if getattr(self, attr) is not None
        }


def coerce_config(config: "ThrottlerConfig | Mapping[str, Any]") -> ThrottlerConfig:
    """Accept either a ThrottlerConfig or a plain mapping."""
    if isinstance(config, ThrottlerConfig):
        return config
    return ThrottlerConfig.from_dict(config)


@dataclass
class ThrottlerSettings:
    """
    Process-level settings for the throttler.

    Attributes:
        status_file: Path of the persisted status record.
        command_timeout: Upper bound in seconds for each backend command.
        use_sudo: Prefix backend commands with "sudo -n".
        throttler_profiles: Named presets, kept as loaded and never validated.
    """

    status_file: str = DEFAULT_STATUS_FILE
    command_timeout: float = 10.0
    use_sudo: bool = True
    throttler_profiles: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_yaml(cls, path: str) -> "ThrottlerSettings":
        """
        Load settings from a YAML file.

        Args:
            path: Path to the YAML settings file.

        Raises:
            SettingsLoadError: If file cannot be read or parsed.
        """
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise SettingsLoadError(path, "file not found")
        except yaml.YAMLError as e:
            raise SettingsLoadError(path, f"invalid YAML: {e}")

        if not data:
            raise SettingsLoadError(path, "empty file")
        if not isinstance(data, dict):
            raise SettingsLoadError(path, "expected a mapping at top level")

        profiles = data.get("throttler_profiles", data.get("throttlerProfiles", []))
        if profiles is None:
            profiles = []
        if not isinstance(profiles, list):
            raise SettingsLoadError(path, "throttler_profiles must be a list")

        settings = cls(
            status_file=data.get("status_file", DEFAULT_STATUS_FILE),
            command_timeout=float(data.get("command_timeout", 10.0)),
            use_sudo=bool(data.get("use_sudo", True)),
            throttler_profiles=profiles,
        )
        settings.apply_env()

        logger.info(f"Loaded {len(settings.throttler_profiles)} throttler profiles from {path}")
        return settings

    def apply_env(self) -> None:
        """Apply environment overrides."""
        status_file = os.environ.get(STATUS_FILE_ENV)
        if status_file:
            self.status_file = status_file

    def get_profile(self, name: str) -> Optional[dict[str, Any]]:
        """
        Get a profile by name.

        Returns:
            Profile dictionary if found, None otherwise.
        """
        for profile in self.throttler_profiles:
            if isinstance(profile, dict) and profile.get("name") == name:
                return profile
        return None
