"""Shared fixtures: directory trees and a scripted stand-in for subprocess.run."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest


class FakeRun:
    """Records subprocess.run calls and replays scripted results in order."""

    def __init__(self) -> None:
        self.calls: list[tuple[list[str], dict]] = []
        self._responses: list[tuple[int, bytes] | BaseException] = []

    def respond(self, returncode: int = 0, stdout: bytes = b"") -> FakeRun:
        self._responses.append((returncode, stdout))
        return self

    def raise_error(self, error: BaseException) -> FakeRun:
        self._responses.append(error)
        return self

    @property
    def commands(self) -> list[list[str]]:
        return [cmd for cmd, _ in self.calls]

    def __call__(self, cmd, **kwargs) -> subprocess.CompletedProcess:
        self.calls.append((list(cmd), kwargs))
        if not self._responses:
            raise AssertionError(f"Unexpected subprocess call: {cmd}")
        response = self._responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        returncode, stdout = response
        return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=b"")


@pytest.fixture
def fake_run(monkeypatch: pytest.MonkeyPatch) -> FakeRun:
    fake = FakeRun()
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


@pytest.fixture
def make_tree(tmp_path: Path):
    """Create directories (trailing '/') and files relative to tmp_path."""

    def _make(*entries: str) -> Path:
        for entry in entries:
            target = tmp_path / entry
            if entry.endswith("/"):
                target.mkdir(parents=True, exist_ok=True)
            else:
                target.parent.mkdir(parents=True, exist_ok=True)
                target.write_text("")
        return tmp_path

    return _make
