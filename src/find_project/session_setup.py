"""
Session Setup

Maps (inside a session?, target session exists?) to exactly one tmux
action and runs it.

| inside | exists | action                       |
|--------|--------|------------------------------|
| yes    | yes    | switch                       |
| yes    | no     | new-session -d, then switch  |
| no     | yes    | attach                       |
| no     | no     | new-session (takes terminal) |
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from loguru import logger

from find_project.config_loader import MULTIPLEXER_COMMAND
from find_project.errors import Result
from find_project.scan_dirs import Project
from find_project.session_detection import SessionFacts, run_multiplexer


class ActionKind(Enum):
    SWITCH = "switch"
    ATTACH_EXISTING = "attach_existing"
    CREATE_DETACHED_THEN_SWITCH = "create_detached_then_switch"
    CREATE_ATTACHED = "create_attached"


# (running_inside_session, target_exists) -> action
DECISION_TABLE = {
    (True, True): ActionKind.SWITCH,
    (True, False): ActionKind.CREATE_DETACHED_THEN_SWITCH,
    (False, True): ActionKind.ATTACH_EXISTING,
    (False, False): ActionKind.CREATE_ATTACHED,
}


@dataclass(frozen=True)
class ReconciliationAction:
    kind: ActionKind
    target_name: str
    work_dir: Path | None = None

    def commands(self) -> list[list[str]]:
        """Multiplexer argument lists for this action, in execution order."""
        switch = ["switch", "-t", self.target_name]
        if self.kind is ActionKind.SWITCH:
            return [switch]
        if self.kind is ActionKind.ATTACH_EXISTING:
            return [["attach", "-t", self.target_name]]

        new_session = ["new-session", "-c", str(self.work_dir), "-s", self.target_name]
        if self.kind is ActionKind.CREATE_DETACHED_THEN_SWITCH:
            return [new_session + ["-d"], switch]
        return [new_session]


def decide_action(project: Project, facts: SessionFacts) -> Result[ReconciliationAction]:
    """
    Pick the action for ``project`` given the session snapshot.

    The session name is ``project.resolve_name()`` both for the existence
    check and for the commands; names are compared verbatim.
    """
    name = project.resolve_name()
    if name.is_err():
        return name
    name = name.value

    target_exists = name in facts.session_names
    kind = DECISION_TABLE[(facts.running_inside_session, target_exists)]
    # Only the create actions need the working directory
    work_dir = None if target_exists else project.path

    logger.debug(
        "Reconciliation action decided",
        operation="decide_action",
        running_inside_session=facts.running_inside_session,
        target_exists=target_exists,
        action=kind.value,
        target_name=name
    )

    return Result.ok(ReconciliationAction(kind=kind, target_name=name, work_dir=work_dir))


def reconcile(
    action: ReconciliationAction, multiplexer: str = MULTIPLEXER_COMMAND
) -> Result[ReconciliationAction]:
    """
    Run the action's commands in order; the first failure aborts the rest.

    Nothing is retried.
    """
    for args in action.commands():
        result = run_multiplexer(args, multiplexer)
        if result.is_err():
            return result

    logger.info(
        "Session reconciled",
        operation="reconcile",
        status="success",
        action=action.kind.value,
        target_name=action.target_name
    )
    return Result.ok(action)
