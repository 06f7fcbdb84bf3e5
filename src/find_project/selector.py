"""
Project Selector

Feeds the discovered project paths to an external fuzzy finder (fzf by
default) and turns its exit status and output into a chosen Project.
"""

import os
import subprocess
from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from find_project.config_loader import PICKER_COMMAND
from find_project.errors import Error, ErrorType, Result
from find_project.scan_dirs import Project

# fzf exits 130 when the user aborts with Esc / Ctrl-C
CANCELLED_EXIT_CODE = 130


def format_project_list(projects: Sequence[Project]) -> bytes:
    """Serialize projects as newline-terminated paths, in discovery order."""
    return b"".join(os.fsencode(project.path) + b"\n" for project in projects)


def _picker_failure(picker: str, code: int | None) -> Error:
    if code is None:
        message = f"{picker} was terminated without an exit code"
    else:
        message = f"{picker} errored with code: {code}"
    return Error(
        error_type=ErrorType.EXTERNAL_TOOL_ERROR,
        message=message,
        context={"command": picker, "return_code": code}
    )


def select_project(
    projects: Sequence[Project], picker: str = PICKER_COMMAND
) -> Result[Project]:
    """
    Let the user choose one project through the picker.

    The picker draws its UI on the terminal, so only stdin and stdout are
    piped. An empty project list is passed through unchanged.

    Returns:
        Result[Project]: Ok with the chosen project, Err(NO_SELECTION) when
        the user cancelled, Err(EXTERNAL_TOOL_ERROR) otherwise
    """
    logger.debug(
        "Starting picker",
        operation="select_project",
        status="started",
        command=picker,
        metrics={"projects_count": len(projects)}
    )

    try:
        result = subprocess.run(
            [picker],
            input=format_project_list(projects),
            stdout=subprocess.PIPE,
            check=False  # Exit codes are mapped explicitly below
        )
    except OSError as e:
        return Result.err(Error(
            error_type=ErrorType.EXTERNAL_TOOL_ERROR,
            message=f"Failed to run `{picker}`: {e}",
            context={"command": picker},
            original_exception=e
        ))

    # Negative return code = killed by signal
    code = result.returncode if result.returncode >= 0 else None

    if code == CANCELLED_EXIT_CODE:
        logger.info(
            "Picker cancelled",
            operation="select_project",
            status="cancelled",
            command=picker
        )
        return Result.err(Error(
            error_type=ErrorType.NO_SELECTION,
            message="No project selected.",
            context={"command": picker}
        ))

    if code != 0:
        return Result.err(_picker_failure(picker, code))

    chosen = (result.stdout or b"").strip()
    if not chosen:
        return Result.err(Error(
            error_type=ErrorType.EXTERNAL_TOOL_ERROR,
            message=f"{picker} exited successfully but returned no path",
            context={"command": picker}
        ))

    project = Project(path=Path(os.fsdecode(chosen)))
    logger.info(
        "Selected project",
        operation="select_project",
        status="success",
        project_path=str(project.path)
    )
    return Result.ok(project)
