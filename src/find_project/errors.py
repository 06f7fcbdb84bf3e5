"""Error handling types (Result + ErrorReport)."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from loguru import logger

T = TypeVar("T")


class ErrorType(Enum):
    CONFIG_ERROR = "config_error"
    SCAN_ERROR = "scan_error"
    NO_SELECTION = "no_selection"
    EXTERNAL_TOOL_ERROR = "external_tool_error"
    NAME_RESOLUTION_ERROR = "name_resolution_error"


@dataclass
class Error:
    error_type: ErrorType
    message: str
    context: dict = field(default_factory=dict)
    original_exception: Exception = None

    @property
    def user_message(self) -> str:
        """Line shown on stderr when this error ends the run."""
        # Cancelling the picker is reported plainly
        if self.error_type is ErrorType.NO_SELECTION:
            return self.message
        return f"error: {self.message}"


@dataclass
class Result(Generic[T]):
    success: bool
    value: T = None
    error: Error = None

    @staticmethod
    def ok(value: T) -> "Result[T]":
        return Result(success=True, value=value)

    @staticmethod
    def err(error: Error) -> "Result[T]":
        return Result(success=False, error=error)

    def is_ok(self) -> bool:
        return self.success

    def is_err(self) -> bool:
        return not self.success


@dataclass
class ErrorReport:
    errors: list[Error] = field(default_factory=list)
    warnings: list[Error] = field(default_factory=list)

    def add_error(self, error: Error):
        self.errors.append(error)
        # bind() so braces in the message are not treated as format fields
        logger.bind(
            operation="error_report",
            status="error",
            error_type=error.error_type.value,
            **error.context
        ).error(error.message)

    def add_warning(self, error: Error):
        self.warnings.append(error)
        logger.bind(
            operation="error_report",
            status="warning",
            error_type=error.error_type.value,
            **error.context
        ).warning(error.message)

    def collect_result(self, result: Result) -> bool:
        """Collect error from Result into report if failed."""
        if result.is_err():
            self.add_error(result.error)
            return False
        return True

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def log_summary(self, op_trace_id: str):
        """Log final summary of skipped roots and fatal failures."""
        logger.info(
            "Run complete",
            operation="error_report",
            status="failed" if self.has_errors() else "complete",
            trace_id=op_trace_id,
            metrics={
                "total_errors": len(self.errors),
                "total_warnings": len(self.warnings)
            }
        )
