"""
Session Detection

Snapshot of tmux state taken once, right before reconciliation: whether
this shell already runs inside a session, and which sessions exist.
"""

import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from loguru import logger

from find_project.config_loader import MULTIPLEXER_COMMAND, SESSION_ENV_MARKER
from find_project.errors import Error, ErrorType, Result


@dataclass(frozen=True)
class SessionFacts:
    running_inside_session: bool
    session_names: frozenset[str]


def is_inside_session(environ: Mapping[str, str] | None = None) -> bool:
    """True iff the session marker variable is present and non-empty."""
    environ = os.environ if environ is None else environ
    return bool(environ.get(SESSION_ENV_MARKER))


def parse_session_names(output: str) -> frozenset[str]:
    """
    Parse ``list-sessions`` output.

    Example input:
        work: 2 windows (created Mon Jan  5 10:00:00 2026)
        dotfiles: 1 windows (created Mon Jan  5 11:00:00 2026) (attached)

    Returns:
        frozenset({"work", "dotfiles"})
    """
    names = set()
    for line in output.splitlines():
        name, sep, _ = line.partition(":")
        if sep:
            names.add(name)
    return frozenset(names)


def run_multiplexer(
    args: Sequence[str],
    multiplexer: str = MULTIPLEXER_COMMAND,
    capture_output: bool = False,
) -> Result[subprocess.CompletedProcess]:
    """
    Run one multiplexer command, attempted exactly once.

    Without ``capture_output`` the command inherits the terminal, which
    ``attach`` and attached ``new-session`` need.

    Returns:
        Result[CompletedProcess]: Ok on exit code 0, otherwise
        Err(EXTERNAL_TOOL_ERROR) carrying the exit code when there is one
    """
    cmd = [multiplexer, *args]
    logger.debug(
        "Running multiplexer command",
        operation="run_multiplexer",
        command=cmd
    )

    try:
        result = subprocess.run(
            cmd,
            capture_output=capture_output,
            check=False  # Handle non-zero returncode explicitly below
        )
    except OSError as e:
        return Result.err(Error(
            error_type=ErrorType.EXTERNAL_TOOL_ERROR,
            message=f"Failed to run `{multiplexer}`: {e}",
            context={"command": cmd},
            original_exception=e
        ))

    if result.returncode != 0:
        # Negative return code = killed by signal
        code = result.returncode if result.returncode > 0 else None
        stderr = result.stderr.decode(errors="replace").strip() if result.stderr else ""
        if code is None:
            message = f"`{' '.join(cmd)}` was terminated without an exit code"
        else:
            message = f"`{' '.join(cmd)}` failed with code: {code}"
        if stderr:
            message += f" ({stderr})"
        return Result.err(Error(
            error_type=ErrorType.EXTERNAL_TOOL_ERROR,
            message=message,
            context={"command": cmd, "return_code": code}
        ))

    return Result.ok(result)


def inspect_sessions(
    multiplexer: str = MULTIPLEXER_COMMAND,
    environ: Mapping[str, str] | None = None,
) -> Result[SessionFacts]:
    """
    Query live session names and the caller's inside-a-session status.

    Zero sessions is an empty set; any non-zero exit is an error.
    """
    listing = run_multiplexer(["list-sessions"], multiplexer, capture_output=True)
    if listing.is_err():
        return listing

    try:
        output = listing.value.stdout.decode("utf-8")
    except UnicodeDecodeError as e:
        return Result.err(Error(
            error_type=ErrorType.EXTERNAL_TOOL_ERROR,
            message=f"`{multiplexer} list-sessions` produced undecodable output",
            context={"command": multiplexer},
            original_exception=e
        ))

    facts = SessionFacts(
        running_inside_session=is_inside_session(environ),
        session_names=parse_session_names(output)
    )

    logger.debug(
        "Session facts collected",
        operation="inspect_sessions",
        status="success",
        running_inside_session=facts.running_inside_session,
        sessions=sorted(facts.session_names),
        metrics={"sessions_count": len(facts.session_names)}
    )

    return Result.ok(facts)
