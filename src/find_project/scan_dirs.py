"""
Project Discovery

Walks each source root exactly ``depth`` directory levels down and reports
the directories found at that level as projects.
"""

import os
import stat
import time
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from loguru import logger

from find_project.config_loader import MIN_SCAN_DEPTH, SourceRoot
from find_project.errors import Error, ErrorReport, ErrorType, Result


@dataclass(frozen=True)
class Project:
    """A project directory. Identity is the path."""

    path: Path

    def resolve_name(self) -> Result[str]:
        """
        Derive the session name from the final path segment.

        Returns:
            Result[str]: Ok with the name, or Err(NAME_RESOLUTION_ERROR) when
            the path has no final segment (e.g. ``/``)
        """
        name = self.path.name
        if not name:
            return Result.err(Error(
                error_type=ErrorType.NAME_RESOLUTION_ERROR,
                message=f"Cannot derive a session name from {self.path}",
                context={"project_path": str(self.path)}
            ))
        return Result.ok(name)


def list_subdirectories(directory: Path) -> list[Path]:
    """
    List the subdirectories of ``directory``, sorted by name.

    Entries whose metadata cannot be read are skipped, and a read error
    partway through the listing keeps the entries read so far. Failing to
    open ``directory`` itself raises OSError.
    """
    subdirs = []
    with os.scandir(directory) as entries:
        while True:
            try:
                entry = next(entries)
            except StopIteration:
                break
            except OSError as e:
                # The directory stream cannot be resumed after a read error
                logger.debug(
                    "Directory listing interrupted",
                    operation="list_subdirectories",
                    status="skip",
                    directory=str(directory),
                    error=str(e)
                )
                break

            try:
                mode = entry.stat().st_mode
            except OSError as e:
                logger.debug(
                    "Skipping unreadable entry",
                    operation="list_subdirectories",
                    status="skip",
                    entry=entry.path,
                    error=str(e)
                )
                continue
            if stat.S_ISDIR(mode):
                subdirs.append(Path(entry.path))
    return sorted(subdirs, key=lambda p: p.name)


def scan_source_root(root: SourceRoot) -> Result[list[Project]]:
    """
    Collect the projects found exactly ``root.depth`` levels below ``root.path``.

    Intermediate directories are descended into but never reported. A
    directory that cannot be opened fails the whole root.

    Returns:
        Result[list[Project]]: Ok with projects in traversal order, or
        Err(SCAN_ERROR)
    """
    if root.depth < MIN_SCAN_DEPTH:
        return Result.err(Error(
            error_type=ErrorType.SCAN_ERROR,
            message=f"Invalid scan depth {root.depth} for {root.path}",
            context={"root": str(root.path), "depth": root.depth}
        ))

    projects = []
    # Stack of (directory, remaining depth); children are pushed in reverse
    # so they are visited in name order.
    pending = [(root.path, root.depth)]

    while pending:
        directory, depth = pending.pop()
        try:
            subdirs = list_subdirectories(directory)
        except OSError as e:
            return Result.err(Error(
                error_type=ErrorType.SCAN_ERROR,
                message=f"Cannot read directory {directory}: {e.strerror or e}",
                context={"root": str(root.path), "directory": str(directory)},
                original_exception=e
            ))

        if depth > 1:
            pending.extend((subdir, depth - 1) for subdir in reversed(subdirs))
        else:
            projects.extend(Project(path=subdir) for subdir in subdirs)

    return Result.ok(projects)


def discover_projects(
    roots: Iterable[SourceRoot], report: ErrorReport
) -> Result[list[Project]]:
    """
    Scan every source root and concatenate the results.

    A root that fails to scan is recorded as a warning in ``report`` and
    skipped. Only when every root fails is the result an error.
    """
    start_time = time.perf_counter()
    op_trace_id = str(uuid4())
    projects = []
    scanned = 0
    failed = 0

    for root in roots:
        result = scan_source_root(root)
        if result.is_err():
            failed += 1
            report.add_warning(result.error)
            continue

        scanned += 1
        projects.extend(result.value)
        logger.debug(
            "Scanned source root",
            operation="discover_projects",
            trace_id=op_trace_id,
            root=str(root.path),
            depth=root.depth,
            metrics={"projects_found": len(result.value)}
        )

    duration_ms = int((time.perf_counter() - start_time) * 1000)

    if scanned == 0:
        return Result.err(Error(
            error_type=ErrorType.SCAN_ERROR,
            message="No source root could be scanned",
            context={"roots_failed": failed}
        ))

    logger.info(
        "Project discovery complete",
        operation="discover_projects",
        status="success",
        trace_id=op_trace_id,
        metrics={
            "projects_found": len(projects),
            "roots_scanned": scanned,
            "roots_failed": failed,
            "duration_ms": duration_ms
        }
    )

    return Result.ok(projects)
