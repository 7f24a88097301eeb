"""
Result values returned by executors and the throttler controller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ResultStatus(str, Enum):
    """Outcome of an executor or controller operation."""

    SUCCESS = "Success"
    FAILED = "Failed"


@dataclass
class Result:
    """
    Structured outcome of an operation.

    Attributes:
        status: Success or Failed.
        message: Human-readable detail (backend output, error text).
        throttler_status: Resulting throttler state for start/stop,
            shaped as {"status": ..., "config": ...}.
    """

    status: ResultStatus
    message: Optional[str] = None
    throttler_status: Optional[dict[str, Any]] = None

    @property
    def ok(self) -> bool:
        return self.status == ResultStatus.SUCCESS

    @classmethod
    def success(cls, message: Optional[str] = None, **kwargs) -> "Result":
        return cls(status=ResultStatus.SUCCESS, message=message, **kwargs)

    @classmethod
    def failed(cls, message: Optional[str] = None) -> "Result":
        return cls(status=ResultStatus.FAILED, message=message)

    @classmethod
    def from_error(cls, error: BaseException) -> "Result":
        """Wrap an exception into a Failed result carrying its message."""
        return cls.failed(str(error))

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"status": self.status.value}
        if self.message is not None:
            data["message"] = self.message
        if self.throttler_status is not None:
            data["throttlerStatus"] = self.throttler_status
        return data
