"""
Entry point.

Flow:
1. Load source roots (config file + $HOME/src)
2. Discover projects under every root
3. Let the user pick one with the fuzzy finder
4. Snapshot tmux sessions
5. Switch to, attach to, or create the project's session
"""

import os
import shlex
from collections.abc import Mapping
from uuid import uuid4

import typer
from loguru import logger

from find_project.config_loader import (
    MULTIPLEXER_COMMAND,
    MULTIPLEXER_ENV_VAR,
    PICKER_COMMAND,
    PICKER_ENV_VAR,
    load_source_roots,
)
from find_project.errors import ErrorReport, ErrorType, Result
from find_project.logging_config import setup_logger, trace_id_var
from find_project.scan_dirs import discover_projects
from find_project.selector import select_project
from find_project.session_detection import inspect_sessions
from find_project.session_setup import decide_action, reconcile

app = typer.Typer(
    name="find-project",
    help="Pick a project with fzf and open it in a tmux session",
    add_completion=False,
)


def _echo(text: str, err: bool = False) -> None:
    """Echo as filesystem bytes; paths may carry undecodable names."""
    typer.echo(os.fsencode(text), err=err)


def _fail(report: ErrorReport, result: Result, main_trace_id: str) -> int:
    """Report a fatal result to the user and return the exit code."""
    # A cancelled picker is an expected outcome, not an error record
    if result.error.error_type is not ErrorType.NO_SELECTION:
        report.collect_result(result)
    _echo(result.error.user_message, err=True)
    report.log_summary(main_trace_id)
    return 1


def run(
    *,
    list_only: bool = False,
    dry_run: bool = False,
    picker: str = PICKER_COMMAND,
    multiplexer: str = MULTIPLEXER_COMMAND,
    environ: Mapping[str, str] | None = None,
) -> int:
    """
    Run the launcher once and return the process exit code.

    Args:
        list_only: Print discovered project paths and stop before the picker
        dry_run: Print the tmux commands instead of running them
        picker: Fuzzy finder command
        multiplexer: tmux-compatible command
        environ: Environment to read (defaults to os.environ)
    """
    environ = os.environ if environ is None else environ
    main_trace_id = str(uuid4())
    trace_id_var.set(main_trace_id)
    report = ErrorReport()

    logger.info(
        "find-project starting",
        operation="main",
        status="started",
        trace_id=main_trace_id
    )

    roots = load_source_roots(environ)
    if roots.is_err():
        return _fail(report, roots, main_trace_id)

    projects = discover_projects(roots.value, report)
    if projects.is_err():
        return _fail(report, projects, main_trace_id)

    if list_only:
        for project in projects.value:
            _echo(str(project.path))
        report.log_summary(main_trace_id)
        return 0

    selected = select_project(projects.value, picker)
    if selected.is_err():
        return _fail(report, selected, main_trace_id)

    facts = inspect_sessions(multiplexer, environ)
    if facts.is_err():
        return _fail(report, facts, main_trace_id)

    action = decide_action(selected.value, facts.value)
    if action.is_err():
        return _fail(report, action, main_trace_id)

    if dry_run:
        for args in action.value.commands():
            _echo(shlex.join([multiplexer, *args]))
        report.log_summary(main_trace_id)
        return 0

    outcome = reconcile(action.value, multiplexer)
    if outcome.is_err():
        return _fail(report, outcome, main_trace_id)

    logger.info(
        "find-project complete",
        operation="main",
        status="success",
        trace_id=main_trace_id,
        action=outcome.value.kind.value,
        target_name=outcome.value.target_name
    )
    report.log_summary(main_trace_id)
    return 0


@app.command()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug records to stderr"),
    list_only: bool = typer.Option(False, "--list", "-l", help="Print discovered projects and exit"),
    dry_run: bool = typer.Option(False, "--dry-run", "-n", help="Print tmux commands instead of running them"),
    picker: str = typer.Option(PICKER_COMMAND, "--picker", envvar=PICKER_ENV_VAR, help="Fuzzy finder command"),
    multiplexer: str = typer.Option(
        MULTIPLEXER_COMMAND, "--multiplexer", envvar=MULTIPLEXER_ENV_VAR, help="tmux command"
    ),
) -> None:
    """Pick a project directory and open it in a tmux session named after it."""
    setup_logger(verbose=verbose)
    exit_code = run(
        list_only=list_only,
        dry_run=dry_run,
        picker=picker,
        multiplexer=multiplexer,
    )
    raise typer.Exit(code=exit_code)


if __name__ == "__main__":
    app()
