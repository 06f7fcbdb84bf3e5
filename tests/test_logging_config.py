"""Tests for JSONL logging and error reporting."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from loguru import logger

from find_project import logging_config
from find_project.errors import Error, ErrorReport, ErrorType, Result
from find_project.logging_config import setup_logger, trace_id_var


@pytest.fixture
def log_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setattr(
        logging_config.platformdirs, "user_log_dir", lambda appname, ensure_exists: str(tmp_path)
    )
    yield tmp_path
    logger.remove()


def _stderr_records(capsys) -> list[dict]:
    return [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.startswith("{")]


class TestSetupLogger:
    def test_console_defaults_to_warning(self, log_dir: Path, capsys) -> None:
        """Test that INFO stays off the terminal unless verbose."""
        setup_logger()
        logger.info("quiet", operation="test")
        logger.warning("loud", operation="test", status="warn", root="/src")

        records = _stderr_records(capsys)
        assert [r["message"] for r in records] == ["loud"]
        assert records[0]["operation"] == "test"
        assert records[0]["status"] == "warn"
        assert records[0]["module"] == "test_logging_config"
        assert records[0]["context"] == {"root": "/src"}
        assert "error_type" not in records[0]

    def test_verbose_and_trace_id(self, log_dir: Path, capsys) -> None:
        setup_logger(verbose=True)
        token = trace_id_var.set("trace-1")
        try:
            logger.debug("detail", operation="test", metrics={"count": 2})
        finally:
            trace_id_var.reset(token)

        record = _stderr_records(capsys)[0]
        assert record["trace_id"] == "trace-1"
        assert record["metrics"] == {"count": 2}

    def test_file_sink(self, log_dir: Path) -> None:
        setup_logger()
        logger.debug("to file", operation="test")
        logger.complete()
        assert "to file" in (log_dir / "find-project.jsonl").read_text()


class TestErrorReport:
    def test_collects_failed_results(self, log_dir: Path) -> None:
        setup_logger(log_to_file=False)
        report = ErrorReport()
        error = Error(ErrorType.SCAN_ERROR, "Cannot read directory /a/{b}", {"root": "/a"})

        assert report.collect_result(Result.ok(1))
        assert not report.collect_result(Result.err(error))
        assert report.has_errors()
        assert report.errors == [error]

    def test_warnings_are_not_errors(self, log_dir: Path) -> None:
        setup_logger(log_to_file=False)
        report = ErrorReport()
        report.add_warning(Error(ErrorType.SCAN_ERROR, "skipped root"))

        assert not report.has_errors()
        assert len(report.warnings) == 1

    def test_error_record_carries_error_type(self, log_dir: Path, capsys) -> None:
        """Test that error_type is a top-level field, not part of the context."""
        setup_logger(log_to_file=False)
        ErrorReport().add_error(Error(ErrorType.EXTERNAL_TOOL_ERROR, "tmux failed", {"exit_code": 1}))

        record = _stderr_records(capsys)[0]
        assert record["level"] == "error"
        assert record["error_type"] == "external_tool_error"
        assert record["context"] == {"exit_code": 1}

    @pytest.mark.parametrize(("fail", "status"), [(True, "failed"), (False, "complete")])
    def test_summary_status(self, log_dir: Path, capsys, fail: bool, status: str) -> None:
        setup_logger(verbose=True, log_to_file=False)
        report = ErrorReport()
        if fail:
            report.add_error(Error(ErrorType.SCAN_ERROR, "No source root could be scanned"))
        report.log_summary("trace-2")

        summary = _stderr_records(capsys)[-1]
        assert summary["message"] == "Run complete"
        assert summary["status"] == status
        assert summary["trace_id"] == "trace-2"
        assert summary["metrics"] == {"total_errors": int(fail), "total_warnings": 0}


class TestUserMessage:
    def test_cancel_is_plain(self) -> None:
        assert Error(ErrorType.NO_SELECTION, "No project selected.").user_message == "No project selected."

    @pytest.mark.parametrize("error_type", [t for t in ErrorType if t is not ErrorType.NO_SELECTION])
    def test_failures_are_prefixed(self, error_type: ErrorType) -> None:
        assert Error(error_type, "boom").user_message == "error: boom"
