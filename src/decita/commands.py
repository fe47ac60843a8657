"""
Command backends.

A command is a named state transition. The core only forwards the name
to a CommandBackend; TableCommands is the bundled backend, where every
command is itself a decision table whose satisfied rule carries the
assignments to run.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict

from decita.errors import ComputationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transition:
    """
    A command invocation coming from a caller.

    Properties:
        name: Command name
        request: Request payload the command may read ("request::<key>")
    """

    name: str
    request: Dict[str, Any] = field(default_factory=dict)


class CommandBackend:
    """Executes named commands against a computation context."""

    def perform(self, name: str, context) -> None:
        raise NotImplementedError


class TableCommands(CommandBackend):
    """
    Commands described by decision tables.

    Performing a command selects the single satisfied rule of the table
    with the same name (same uniqueness rules as any decision) and runs
    its assignments.
    """

    def __init__(self, tables):
        self.tables = tables

    def perform(self, name: str, context) -> None:
        table = self.tables.table(name)
        rule = table.matching_rule(context)
        if rule is table.else_rule:
            raise ComputationError(f"No rule of command '{name}' is satisfied")
        logger.info("Performing command '%s' using rule '%s'", name, rule.name)
        rule.perform(context)
