"""
Computation context and stored state.

StoredState is the durable side: logical source name -> Locator. It is the
only mutable part of the engine and is changed exclusively by assignments.

ComputationContext is the short-lived side: one per evaluation request.
It wires together constants, the request, one TableLocator per decision
table and the stored state's locators, plus a trace sink.

CONCURRENCY:
    Neither class is safe to share between concurrent evaluations.
    Self-test isolation is done by copying state (empty_state_copy), not
    by locking.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, Optional, Set, Tuple

from decita.conditions import Coordinate
from decita.errors import ComputationError, ConfigurationError, ResolutionError
from decita.locators import (
    ConstantLocator,
    InMemoryLocator,
    Locator,
    RequestLocator,
    TableLocator,
)
from decita.tracking import EventType, OutputTracker

logger = logging.getLogger(__name__)


class StoredState:
    """
    The durable collection of locators backing a context.

    Properties:
        locators: Mapping of logical source name -> Locator
    """

    def __init__(self, locators: Optional[Dict[str, Locator]] = None):
        self.locators: Dict[str, Locator] = dict(locators or {})
        for name, locator in self.locators.items():
            if not locator.name:
                locator.name = name

    @classmethod
    def from_dict(cls, nested: Dict[str, Dict[str, Any]]) -> StoredState:
        """Build a state of InMemoryLocators from a plain nested mapping."""
        return cls({name: InMemoryLocator(values, name=name) for name, values in nested.items()})

    def has_locator(self, name: str) -> bool:
        return name in self.locators

    def locator_for(self, name: str) -> Locator:
        if name not in self.locators:
            raise ResolutionError(f"Locator '{name}' not found in stored state")
        return self.locators[name]

    def names(self) -> Iterable[str]:
        return self.locators.keys()

    def snapshot(self) -> StoredState:
        """Independent deep copy of every locator."""
        return StoredState({name: loc.snapshot() for name, loc in self.locators.items()})

    def commit(self, snapshot: StoredState) -> None:
        """Adopt the locators of a snapshot taken from this state."""
        self.locators = snapshot.locators

    def empty_copy(self) -> StoredState:
        """Copy with every locator reset to its defaults."""
        return StoredState({name: loc.empty() for name, loc in self.locators.items()})

    def state(self) -> Dict[str, Dict[str, Any]]:
        """Export as a plain nested mapping."""
        return {name: loc.state() for name, loc in self.locators.items()}

    def __repr__(self) -> str:
        return f"StoredState({sorted(self.locators)!r})"


class ComputationContext:
    """
    Registry of locators for one evaluation.

    Registration order (later entries shadow earlier ones):
        1. constant
        2. request
        3. one TableLocator per decision table
        4. stored state locators

    Args:
        state: StoredState to read from and assign into
        tables: DecisionTables available for nested lookups and commands
        request: Incoming request payload (mapping or RequestLocator)
        commands: CommandBackend used by perform()
        tracker: OutputTracker receiving trace events
    """

    def __init__(self, state: Optional[StoredState] = None, tables=None,
                 request=None, commands=None,
                 tracker: Optional[OutputTracker] = None):
        self.state = state if state is not None else StoredState()
        self.tables = tables
        self.commands = commands
        self.tracker = tracker if tracker is not None else OutputTracker()
        self.request = request if isinstance(request, RequestLocator) else RequestLocator(request)
        self.locators: Dict[str, Locator] = {}
        self._outcomes: Dict[str, Dict[str, str]] = {}
        self._conditions: Dict[Tuple[int, str], str] = {}
        self._computing: Set[str] = set()

        ConstantLocator().register_with(self)
        self.request.register_with(self)
        if tables is not None:
            for table in tables:
                TableLocator(table).register_with(self)
        for name, locator in self.state.locators.items():
            if name in self.locators:
                logger.debug("State locator '%s' shadows a built-in locator", name)
            self.register_locator(name, locator)

    def register_locator(self, name: str, locator: Locator) -> None:
        self.locators[name] = locator

    def locator_for(self, name: str) -> Locator:
        if name not in self.locators:
            raise ResolutionError(f"Locator '{name}' not found in computation context")
        return self.locators[name]

    def value_for(self, coordinate: Coordinate) -> str:
        return self.locator_for(coordinate.locator).fragment_by(coordinate.fragment, self)

    def assign(self, coordinate: Coordinate, value: str) -> None:
        self.locator_for(coordinate.locator).set_fragment(coordinate.fragment, value)

    def table_outcome(self, table) -> Dict[str, str]:
        """
        Outcome of a table in this context, computed once until
        reload_tables() is called.

        Raises:
            ConfigurationError: If the table (indirectly) depends on itself
        """
        if table.name in self._outcomes:
            return self._outcomes[table.name]
        if table.name in self._computing:
            raise ConfigurationError(
                f"Cyclic dependency detected while computing table '{table.name}'"
            )
        self._computing.add(table.name)
        try:
            outcome = table.outcome(self)
        finally:
            self._computing.discard(table.name)
        self._outcomes[table.name] = outcome
        return outcome

    def condition_result(self, locator: Locator, fragment: str,
                         compute: Callable[[], str]) -> str:
        """Result of a named condition in this context, computed once."""
        key = (id(locator), fragment)
        if key not in self._conditions:
            self._conditions[key] = compute()
        return self._conditions[key]

    def reload_tables(self) -> None:
        """Forget cached table outcomes and condition results."""
        self._outcomes.clear()
        self._conditions.clear()

    def empty_state_copy(self) -> ComputationContext:
        """
        A context over a reset copy of the state, used by self-tests.
        Locators registered by hand (not part of the stored state) are
        carried over as reset copies too.
        """
        copy = ComputationContext(
            self.state.empty_copy(),
            self.tables,
            self.request.empty(),
            self.commands,
            self.tracker,
        )
        for name, locator in self.locators.items():
            if name not in copy.locators:
                copy.register_locator(name, locator.empty())
        return copy

    def perform(self, command: str) -> None:
        """Forward a named command to the command backend."""
        if self.commands is None:
            raise ComputationError(
                f"Cannot perform '{command}': no command backend configured"
            )
        self.log_computation(EventType.COMMAND, command)
        self.commands.perform(command, self)

    def log_computation(self, kind: EventType, description: str, result: Any = None) -> None:
        self.tracker.track(kind, description, result)
