"""
Locators: the sources a computation context resolves fragments from.

A Locator answers one question: "what is the value of fragment X?".
Values always come back as strings, whatever the backing store holds.

Variants:
    - InMemoryLocator     plain mutable mapping (the usual stored state)
    - RequestLocator      the incoming request payload
    - ConstantLocator     resolves a fragment name to itself
    - TableLocator        the outcome of another decision table
    - ConditionsLocator   named conditions, with a result cache

ARCHITECTURAL RULE:
    Locators are registered explicitly in each ComputationContext.
    There is no global registry.
"""

import copy
import logging
from typing import Any, Dict, Optional

from decita.conditions import CONSTANT, Condition
from decita.errors import ComputationError, ResolutionError

logger = logging.getLogger(__name__)

REQUEST = "request"
CONDITIONS = "conditions"


def as_fragment_value(value: Any) -> str:
    """
    Render a stored value the way conditions see it.

    Booleans become "true"/"false", None becomes "undefined", everything
    else goes through str().
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "undefined"
    return str(value)


class Locator:
    """
    Base class for all locators.

    Subclasses must implement fragment_by(). Writable locators also
    override set_fragment(); stateful ones override empty() and
    state().
    """

    name: str = ""

    def fragment_by(self, fragment: str, context) -> str:
        raise NotImplementedError

    def register_with(self, context, name: Optional[str] = None) -> None:
        context.register_locator(name or self.name, self)

    def set_fragment(self, fragment: str, value: str) -> None:
        raise ComputationError(
            f"Cannot assign '{fragment}': locator '{self.name}' is read-only"
        )

    def snapshot(self) -> "Locator":
        """Structurally independent copy."""
        return copy.deepcopy(self)

    def empty(self) -> "Locator":
        """Copy reset to default contents."""
        return self.snapshot()

    def state(self) -> Dict[str, Any]:
        return {}


class InMemoryLocator(Locator):
    """
    A mutable mapping of fragments.

    Properties:
        values: Current fragment values (any type, rendered on read)
        defaults: Contents restored by empty()
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None,
                 defaults: Optional[Dict[str, Any]] = None, name: str = ""):
        self.values: Dict[str, Any] = dict(values or {})
        self.defaults: Dict[str, Any] = dict(defaults or {})
        self.name = name

    def fragment_by(self, fragment: str, context) -> str:
        if fragment not in self.values:
            raise ResolutionError(
                f"Fragment '{fragment}' not found in locator '{self.name or '<in-memory>'}'"
            )
        return as_fragment_value(self.values[fragment])

    def set_fragment(self, fragment: str, value: str) -> None:
        logger.debug("Setting '%s' in '%s' to '%s'", fragment, self.name, value)
        self.values[fragment] = value

    def empty(self) -> "InMemoryLocator":
        return type(self)(copy.deepcopy(self.defaults), copy.deepcopy(self.defaults), self.name)

    def state(self) -> Dict[str, Any]:
        return copy.deepcopy(self.values)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.values!r})"


class RequestLocator(InMemoryLocator):
    """
    The incoming request data. Writable so that a self-test can prepare
    the request a command reads.
    """

    def __init__(self, values: Optional[Dict[str, Any]] = None,
                 defaults: Optional[Dict[str, Any]] = None, name: str = REQUEST):
        super().__init__(values, defaults, name)


class ConstantLocator(Locator):
    """Every fragment's value is its own name: "10" -> "10"."""

    name = CONSTANT

    def fragment_by(self, fragment: str, context) -> str:
        return fragment


class TableLocator(Locator):
    """
    Fronts a DecisionTable. Resolving a fragment computes the table's
    whole outcome in the same context and returns one field of it.
    The outcome itself is cached by the context, see reload_tables().
    """

    def __init__(self, table):
        self.table = table
        self.name = table.name

    def fragment_by(self, fragment: str, context) -> str:
        outcome = context.table_outcome(self.table)
        if fragment not in outcome:
            raise ResolutionError(
                f"Table '{self.table.name}' has no outcome named '{fragment}'"
            )
        return outcome[fragment]


class ConditionsLocator(Locator):
    """
    Named conditions whose results can be referenced as fragments,
    e.g. "conditions::is-open" resolves to "true" or "false".

    Results are cached by the context, like table outcomes, so a locator
    kept in a StoredState never carries results from one evaluation to
    the next.
    """

    name = CONDITIONS

    def __init__(self):
        self.conditions: Dict[str, Condition] = {}

    def with_condition(self, name: str, condition: Condition) -> "ConditionsLocator":
        self.conditions[name] = condition
        return self

    def fragment_by(self, fragment: str, context) -> str:
        if fragment not in self.conditions:
            raise ResolutionError(f"Condition '{fragment}' is not registered")
        return context.condition_result(
            self, fragment,
            lambda: as_fragment_value(self.conditions[fragment].evaluate(context)),
        )

    def empty(self) -> "ConditionsLocator":
        fresh = type(self)()
        fresh.conditions = dict(self.conditions)
        return fresh
