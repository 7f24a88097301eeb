"""
Command line interface for throttler.

Each invocation restores the throttler state from the status file, runs
one command and prints the result as JSON.
"""

import argparse
import json
import logging
import os
import sys
from typing import Any, Optional

from .config import ThrottlerSettings
from .controller import ThrottlerController
from .exceptions import SettingsLoadError, UnsupportedPlatformError
from .results import Result

logger = logging.getLogger("throttler")

DEFAULT_CONFIG_PATH = "conf/throttler.yaml"

# CLI option -> config key
_CONFIG_OPTIONS = {
    "latency": "latency",
    "jitter": "jitter",
    "bandwidth": "bandwidth",
    "loss": "packetLoss",
    "duplication": "packetDuplication",
    "corruption": "packetCorruption",
    "interface": "netInterface",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="throttler",
        description="Network condition emulation control",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help=f"Path to settings YAML (default: {DEFAULT_CONFIG_PATH} if present)"
    )
    parser.add_argument(
        "--platform",
        default=None,
        help="Override the detected OS name (Linux, Darwin, FreeBSD)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser("start", help="Start (or restart) throttling")
    start.add_argument("--profile", "-p", help="Named profile from the settings file")
    start.add_argument("--interface", "-i", help="Network interface to throttle")
    start.add_argument("--latency", type=int, help="Added delay in ms")
    start.add_argument("--jitter", type=int, help="Delay variation in ms")
    start.add_argument("--bandwidth", type=int, help="Bandwidth cap in kbit/s (0 = no cap)")
    start.add_argument("--loss", type=float, help="Packet loss percentage")
    start.add_argument("--duplication", type=float, help="Packet duplication percentage")
    start.add_argument("--corruption", type=float, help="Packet corruption percentage")

    subparsers.add_parser("stop", help="Stop throttling")
    subparsers.add_parser("status", help="Show throttler status")
    subparsers.add_parser("profiles", help="List configured profiles")
    subparsers.add_parser("check", help="Check backend tools and privileges")
    subparsers.add_parser("list", help="Show installed rules")
    subparsers.add_parser("exists", help="Check whether rules are installed")

    return parser


def load_settings(path: Optional[str]) -> ThrottlerSettings:
    if path is None:
        if not os.path.exists(DEFAULT_CONFIG_PATH):
            settings = ThrottlerSettings()
            settings.apply_env()
            return settings
        path = DEFAULT_CONFIG_PATH
    return ThrottlerSettings.from_yaml(path)


def build_config(args: argparse.Namespace, settings: ThrottlerSettings) -> dict[str, Any]:
    """Merge a named profile with explicit command line values."""
    config: dict[str, Any] = {}
    if args.profile:
        profile = settings.get_profile(args.profile)
        if profile is None:
            raise ValueError(f"Throttler profile not found: {args.profile}")
        config.update({k: v for k, v in profile.items() if k != "name"})

    for option, key in _CONFIG_OPTIONS.items():
        value = getattr(args, option)
        if value is not None:
            config[key] = value
    return config


def _print(data: Any) -> None:
    print(json.dumps(data, indent=2, default=str))


def _print_result(result: Result) -> int:
    _print(result.to_dict())
    return 0 if result.ok else 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = load_settings(args.config)
    except SettingsLoadError as e:
        logger.error(str(e))
        return 2

    controller = ThrottlerController.from_settings(settings, platform_name=args.platform)

    try:
        if args.command == "start":
            try:
                config = build_config(args, settings)
            except ValueError as e:
                return _print_result(Result.from_error(e))
            return _print_result(controller.start(config))
        if args.command == "stop":
            return _print_result(controller.stop())
        if args.command == "status":
            _print(controller.get_status())
            return 0
        if args.command == "profiles":
            _print(controller.get_profiles_list())
            return 0
        if args.command == "check":
            return _print_result(controller.check())
        if args.command == "list":
            return _print_result(controller.list())
        if args.command == "exists":
            return _print_result(controller.exists())
    except UnsupportedPlatformError as e:
        logger.error(str(e))
        return 2

    return 1


if __name__ == "__main__":
    sys.exit(main())
