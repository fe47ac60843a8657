"""
Caller-facing entry points.

DecitaFacade makes decisions: it owns the decision tables and builds a
fresh ComputationContext for every request.

Computation is the unit a caller works with: decisions, a command backend
and the current stored state. It exposes decide / perform / self-test
plus state import and export.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Union

from decita.commands import CommandBackend, TableCommands, Transition
from decita.config import EngineConfig
from decita.context import ComputationContext, StoredState
from decita.model import DecisionTables
from decita.source import read_tables
from decita.verification import SelfTestReport, verify_tables

logger = logging.getLogger(__name__)

StateLike = Union[StoredState, Dict[str, Dict[str, Any]]]


def _as_state(state: Optional[StateLike]) -> StoredState:
    if state is None:
        return StoredState()
    if isinstance(state, StoredState):
        return state
    return StoredState.from_dict(state)


class DecitaFacade:
    """Makes decisions against a fixed set of decision tables."""

    def __init__(self, tables: DecisionTables, state: Optional[StateLike] = None,
                 commands: Optional[CommandBackend] = None):
        self.tables = tables
        self.state = _as_state(state)
        self.commands = commands

    def context(self, state: Optional[StateLike] = None,
                request: Optional[Dict[str, Any]] = None) -> ComputationContext:
        return ComputationContext(
            self.state if state is None else _as_state(state),
            self.tables,
            request,
            self.commands,
        )

    def decision_for(self, table: str, state: Optional[StateLike] = None,
                     request: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
        """
        Compute the outcome of a table.

        Raises:
            DecitaError: If the table can't be found or computed
        """
        return self.tables.decision_for(table, self.context(state, request))


class Computation:
    """
    A decision engine bound to one stored state.

    Properties:
        decisions: DecitaFacade making the decisions
        commands: CommandBackend executing transitions
        state: Current StoredState (mutated by perform())
    """

    def __init__(self, decisions: DecitaFacade, commands: Optional[CommandBackend],
                 state: Optional[StateLike] = None):
        self.decisions = decisions
        self.commands = commands
        self.state = _as_state(state)

    @classmethod
    def from_tables(cls, tables: DecisionTables, commands: Optional[DecisionTables] = None,
                    state: Optional[StateLike] = None) -> Computation:
        """Build a Computation whose commands are decision tables as well."""
        backend = TableCommands(commands if commands is not None else DecisionTables())
        stored = _as_state(state)
        return cls(DecitaFacade(tables, stored, backend), backend, stored)

    @classmethod
    def from_config(cls, config: EngineConfig, state: Optional[StateLike] = None) -> Computation:
        tables = DecisionTables()
        if config.tables_dir:
            tables = read_tables(config.tables_dir, config.extension, config.delimiter)
        commands = None
        if config.commands_dir:
            commands = read_tables(config.commands_dir, config.extension, config.delimiter)
        return cls.from_tables(tables, commands, state)

    def context(self, request: Optional[Dict[str, Any]] = None) -> ComputationContext:
        return ComputationContext(self.state, self.decisions.tables, request, self.commands)

    def decide_for(self, table: str, state: Optional[StateLike] = None) -> Dict[str, str]:
        return self.decisions.decision_for(table, self.state if state is None else state)

    def perform(self, transition: Transition) -> None:
        """
        Run a command against the current state.

        The command works on a snapshot; the state only changes when every
        assignment succeeded.
        """
        logger.info("Performing '%s'", transition.name)
        working = self.state.snapshot()
        ComputationContext(
            working, self.decisions.tables, transition.request, self.commands
        ).perform(transition.name)
        self.state.commit(working)

    def has_state_for(self, table: str) -> bool:
        return self.state.has_locator(table)

    def state_for(self, table: str, fragments: Iterable[str]) -> Dict[str, str]:
        """Resolve the requested fragments of one stored locator."""
        locator = self.state.locator_for(table)
        context = self.context()
        return {fragment: locator.fragment_by(fragment, context) for fragment in fragments}

    def with_state(self, incoming: Dict[str, Dict[str, Any]]) -> Computation:
        """A new Computation over a caller-supplied state snapshot."""
        return Computation(self.decisions, self.commands, StoredState.from_dict(incoming))

    def stored_state(self) -> Dict[str, Dict[str, Any]]:
        return self.state.state()

    def self_test(self, tests: Optional[DecisionTables] = None) -> SelfTestReport:
        """
        Self-test every rule of the given tables (the decision tables by
        default) on empty copies of the current state.
        """
        return verify_tables(tests if tests is not None else self.decisions.tables, self.context())
