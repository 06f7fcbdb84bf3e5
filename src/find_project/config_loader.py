"""
Configuration Loading

Source roots come from ``$XDG_CONFIG_HOME/find_project/find_project.conf``,
one ``<path> <depth>`` entry per line, followed by the implicit
``$HOME/src`` root at depth 2.
"""

import os
import time
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from find_project.errors import Error, ErrorType, Result

PROJECT_NAME = "find_project"
CONFIG_FILE_NAME = f"{PROJECT_NAME}.conf"

# Implicit root, always appended after the file entries
DEFAULT_SOURCE_SUBDIR = "src"
DEFAULT_SCAN_DEPTH = 2

# Depth is a small positive bound that fits in one byte
MIN_SCAN_DEPTH = 1
MAX_SCAN_DEPTH = 255

# External commands
PICKER_COMMAND = "fzf"
MULTIPLEXER_COMMAND = "tmux"
PICKER_ENV_VAR = "FIND_PROJECT_PICKER"
MULTIPLEXER_ENV_VAR = "FIND_PROJECT_MULTIPLEXER"

# Present and non-empty when the shell already runs inside tmux
SESSION_ENV_MARKER = "TMUX"


@dataclass(frozen=True)
class SourceRoot:
    """A directory under which projects live exactly ``depth`` levels down."""

    path: Path
    depth: int


def _require_env(name: str, environ: Mapping[str, str]) -> Result[str]:
    value = environ.get(name)
    if not value:
        return Result.err(Error(
            error_type=ErrorType.CONFIG_ERROR,
            message=f"Environment variable {name} is not set",
            context={"env_var": name}
        ))
    return Result.ok(value)


def get_config_path(environ: Mapping[str, str] | None = None) -> Result[Path]:
    """Resolve the config file path from ``XDG_CONFIG_HOME``."""
    environ = os.environ if environ is None else environ
    config_home = _require_env("XDG_CONFIG_HOME", environ)
    if config_home.is_err():
        return config_home
    return Result.ok(Path(config_home.value) / PROJECT_NAME / CONFIG_FILE_NAME)


def parse_config_line(line: str) -> SourceRoot | None:
    """
    Parse one ``<path> <depth>`` line.

    Returns:
        SourceRoot, or None for blank, comment or malformed lines
    """
    line = line.strip()
    if not line or line.startswith("#"):
        return None

    fields = line.split(" ")
    if len(fields) != 2:
        return None

    path, depth = fields
    if not path or not (depth.isascii() and depth.isdigit()):
        return None

    depth = int(depth)
    if not MIN_SCAN_DEPTH <= depth <= MAX_SCAN_DEPTH:
        return None

    try:
        path = Path(path).expanduser()
    except RuntimeError:
        # ~user with no such user
        return None
    if not path.is_absolute():
        return None

    return SourceRoot(path=path, depth=depth)


def parse_config(text: str) -> list[SourceRoot]:
    """Parse config file contents, skipping malformed lines."""
    roots = []
    for line_number, line in enumerate(text.splitlines(), start=1):
        root = parse_config_line(line)
        if root is None:
            if line.strip() and not line.strip().startswith("#"):
                logger.debug(
                    "Skipping malformed config line",
                    operation="parse_config",
                    status="skip",
                    line_number=line_number,
                    line_content=line
                )
            continue
        roots.append(root)
    return roots


def default_source_root(environ: Mapping[str, str] | None = None) -> Result[SourceRoot]:
    """Build the implicit ``$HOME/src`` root."""
    environ = os.environ if environ is None else environ
    home = _require_env("HOME", environ)
    if home.is_err():
        return home
    return Result.ok(SourceRoot(
        path=Path(home.value) / DEFAULT_SOURCE_SUBDIR,
        depth=DEFAULT_SCAN_DEPTH
    ))


def load_source_roots(environ: Mapping[str, str] | None = None) -> Result[list[SourceRoot]]:
    """
    Load source roots from the config file plus the implicit default.

    A missing config file contributes no entries; an unreadable one is fatal.

    Returns:
        Result[list[SourceRoot]]: Ok with file entries then the default root,
        or Err with a CONFIG_ERROR
    """
    start_time = time.perf_counter()
    environ = os.environ if environ is None else environ

    config_path = get_config_path(environ)
    if config_path.is_err():
        return config_path
    config_path = config_path.value

    logger.debug(
        "Loading source roots",
        operation="load_source_roots",
        status="started",
        config_path=str(config_path)
    )

    try:
        roots = parse_config(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        logger.warning(
            "Config file not found, using default source root only",
            operation="load_source_roots",
            status="fallback",
            config_path=str(config_path)
        )
        roots = []
    except (OSError, UnicodeDecodeError) as e:
        return Result.err(Error(
            error_type=ErrorType.CONFIG_ERROR,
            message=f"Cannot read config file {config_path}: {e}",
            context={"config_path": str(config_path)},
            original_exception=e
        ))

    default_root = default_source_root(environ)
    if default_root.is_err():
        return default_root
    roots.append(default_root.value)

    duration_ms = int((time.perf_counter() - start_time) * 1000)
    logger.debug(
        "Source roots loaded",
        operation="load_source_roots",
        status="success",
        config_path=str(config_path),
        metrics={"roots_count": len(roots), "duration_ms": duration_ms}
    )

    return Result.ok(roots)
