"""
Throttler controller.

Owns the throttler state (status, active config, profiles), drives the
selected executor and keeps the persisted status record in step with it.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Mapping, Optional

from .config import ThrottlerConfig, ThrottlerSettings, ThrottlerStatus, coerce_config
from .exceptions import InvalidOperationError, PersistenceCorruptionError
from .executor import Executor
from .results import Result
from .selector import current_platform, select_executor
from .store import FileStatusStore, StatusRecord, StatusStore
from .validation import is_valid_network_interface, validate_config

logger = logging.getLogger(__name__)


def _profiles_from(settings: Any) -> list:
    if settings is None:
        return []
    if isinstance(settings, Mapping):
        profiles = settings.get("throttlerProfiles", settings.get("throttler_profiles"))
    else:
        profiles = getattr(settings, "throttler_profiles", None)
    return profiles if profiles is not None else []


class ThrottlerController:
    """
    State machine for network throttling.

    start() and stop() hold an internal lock for the whole operation,
    including the persistence write, so mutating calls never interleave.
    Queries do not take the lock.

    Example:
        >>> controller = ThrottlerController.from_settings(ThrottlerSettings())
        >>> controller.start({"latency": 100, "bandwidth": 1000,
        ...                   "packetLoss": 1, "netInterface": "eth0"})
        >>> controller.stop()
    """

    def __init__(
        self,
        store: StatusStore,
        platform_name: Optional[str] = None,
        executor: Optional[Executor] = None,
        interface_exists: Callable[[Any], bool] = is_valid_network_interface,
        executor_options: Optional[dict[str, Any]] = None,
    ):
        """
        Initialize the controller.

        Args:
            store: Where the status record is persisted.
            platform_name: OS name used to pick the executor. Defaults to
                the running host.
            executor: Use this executor instead of selecting one by platform.
            interface_exists: Network interface check used by validation.
            executor_options: Constructor options for the selected executor.
        """
        self.store = store
        self.platform_name = platform_name or current_platform()
        self._executor = executor
        self._executor_options = executor_options or {}
        self._interface_exists = interface_exists
        self._lock = threading.RLock()

        self._status = ThrottlerStatus.UNINITIALIZED
        self._current_conf: Optional[ThrottlerConfig] = None
        self._profiles: list = []

    @classmethod
    def from_settings(cls, settings: ThrottlerSettings, **kwargs) -> ThrottlerController:
        """Build a controller backed by the settings' status file and initialize it."""
        kwargs.setdefault(
            "executor_options",
            {"use_sudo": settings.use_sudo, "timeout": settings.command_timeout},
        )
        controller = cls(FileStatusStore(settings.status_file), **kwargs)
        controller.init(settings)
        return controller

    @property
    def status(self) -> ThrottlerStatus:
        return self._status

    def init(self, settings: Any) -> None:
        """
        Load profiles and restore the persisted status.

        A corrupt status record is logged, removed and treated as absent.
        """
        profiles = _profiles_from(settings)
        record: Optional[StatusRecord] = None

        try:
            record = self.store.load()
        except PersistenceCorruptionError as e:
            logger.error(f"Failed read current configuration: {e}. Removing broken file.")
            try:
                self.store.clear()
            except OSError as clear_error:
                logger.error(f"Failed to remove broken status record: {clear_error}")

        with self._lock:
            self._profiles = profiles
            self._current_conf = record.conf if record is not None else None
            self._status = record.status if record is not None else ThrottlerStatus.INITIALIZED

        logger.info(
            f"Throttler configuration: profiles={len(self._profiles)}, "
            f"current configuration={self._conf_dict()}, status={self._status.value}"
        )

    def get_executor(self) -> Executor:
        """
        Return the executor for this controller.

        Raises:
            UnsupportedPlatformError: If no backend exists for the platform.
        """
        if self._executor is not None:
            return self._executor
        return select_executor(self.platform_name, **self._executor_options)

    def start(self, config: ThrottlerConfig | Mapping[str, Any]) -> Result:
        """
        Apply a configuration, restarting if one is already active.

        Returns:
            Success with the new throttler status, or a Failed result.
        """
        with self._lock:
            try:
                return self._start(config)
            except Exception as e:
                logger.error(f"Throttler start error: {e}")
                return Result.from_error(e)

    def _start(self, config: ThrottlerConfig | Mapping[str, Any]) -> Result:
        conf = coerce_config(config)

        res = validate_config(conf, self._interface_exists)
        if not res.ok:
            logger.warning(f"Can't start Throttler - bad config. Error: {res.message}")
            return res

        restarted = False
        if self._status == ThrottlerStatus.STARTED:
            res = self._stop()
            if not res.ok:
                logger.error(f"Can't re-start Throttler. Error: {res.message}")
                return Result.failed(res.message)
            restarted = True

        res = self.get_executor().start(conf)
        if not res.ok:
            logger.error(f"Can't start Throttler. Error: {res.message}")
            return res

        self._current_conf = conf
        self._status = ThrottlerStatus.STARTED
        self.store.save(StatusRecord(status=ThrottlerStatus.STARTED, conf=conf))

        message = "Throttler was re-started" if restarted else "Throttler was started"
        logger.info(f"{message} on {conf.net_interface}")
        return Result.success(
            message,
            throttler_status={"status": ThrottlerStatus.STARTED.value, "config": conf.to_dict()},
        )

    def stop(self) -> Result:
        """
        Remove the active configuration.

        Returns:
            Success with the new throttler status, or a Failed result
            (including when nothing was started).
        """
        with self._lock:
            try:
                return self._stop()
            except Exception as e:
                logger.error(f"Throttler stop error: {e}")
                return Result.from_error(e)

    def _stop(self) -> Result:
        if self._current_conf is None:
            logger.warning("Throttler wasn't started - nothing to stop")
            return Result.from_error(
                InvalidOperationError("Throttler wasn't started - nothing to stop")
            )

        res = self.get_executor().stop(self._current_conf)
        if not res.ok:
            logger.error(f"Can't stop Throttler. Error: {res.message}")
            return res

        self._current_conf = None
        self._status = ThrottlerStatus.STOPPED
        self.store.clear()

        logger.info("Throttler was stopped")
        return Result.success(
            "Throttler was stopped",
            throttler_status={"status": ThrottlerStatus.STOPPED.value},
        )

    def check(self) -> Result:
        return self.get_executor().check()

    def list(self) -> Result:
        return self.get_executor().list()

    def exists(self) -> Result:
        return self.get_executor().exists()

    def get_status(self) -> dict[str, Any]:
        """
        Current status, the active config if any, and the backend's
        listing of installed rules when it can be obtained.
        """
        result: dict[str, Any] = {"status": self._status.value}
        conf = self._conf_dict()
        if conf is not None:
            result["config"] = conf

        listed = self.list()
        if listed.ok:
            result["shellOutput"] = listed.message
        return result

    def get_profiles_list(self) -> list:
        return self._profiles

    def get_current_config(self) -> Optional[ThrottlerConfig]:
        return self._current_conf

    def _conf_dict(self) -> Optional[dict[str, Any]]:
        return self._current_conf.to_dict() if self._current_conf is not None else None
