"""
Core Decision Model Objects

Defines the fundamental data structures of the decision engine:
    - RuleFragments (one cell of one rule)
    - Assignments (state-changing cells)
    - Rules (one column of a table)
    - DecisionTables (ordered rules plus an else-rule)
    - DecisionTables collection

ARCHITECTURAL RULE:
    Rules and tables are immutable prototypes. They are never changed
    after construction; all mutable data lives in the locators of a
    StoredState, and only assignments write to it.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from decita.conditions import Condition, Coordinate
from decita.errors import AmbiguityError, ResolutionError
from decita.locators import REQUEST
from decita.tracking import EventType

logger = logging.getLogger(__name__)

HEADER = "HDR"
CONDITION = "CND"
OUTCOME = "OUT"
ASSIGNMENT = "ASG"

ELSE = "else"
EXECUTE = "execute"


@dataclass(frozen=True)
class RuleFragment:
    """
    One cell belonging to one rule.

    Properties:
        type: Row tag the cell came from (CND, OUT, ASG or HDR)
        name: Row subject, e.g. "market::shop" or "outcome"
        value: Cell value for this rule
    """

    type: str
    name: str
    value: str


@dataclass(frozen=True)
class CheckFailure:
    """
    A condition that did not hold after a self-test.

    This is a diagnostic, not an error.
    """

    condition: str
    actual: str


@dataclass(frozen=True)
class Assignment:
    """
    Writes a value into a state coordinate.

    The value is either a coordinate ("request::name"), resolved before
    writing, or a literal written as is.
    """

    target: Coordinate
    value: str

    @classmethod
    def parse(cls, target: str, value: str) -> "Assignment":
        return cls(Coordinate.parse(target), value)

    def source(self) -> Coordinate:
        return Coordinate.parse(self.value)

    def perform_in(self, context) -> None:
        resolved = context.value_for(self.source())
        context.assign(self.target, resolved)

    def command_args(self) -> List[str]:
        """Request fragments this assignment reads."""
        source = self.source()
        if source.locator == REQUEST:
            return [source.fragment]
        return []

    def as_string(self) -> str:
        return f"{self.target.as_string()} := {self.value}"


@dataclass(frozen=True)
class Rule:
    """
    A single rule, i.e. one column of a decision table.

    Properties:
        name:
            Rule identifier, "<table>::<label>"

        fragments:
            Ordered cells of this rule: conditions, then outcomes,
            then assignments

    Derived on construction (and therefore validated at load time):
        conditions: Condition objects parsed from CND fragments
        assignments: Assignment objects parsed from ASG fragments

    A rule is satisfied iff all its conditions hold. A rule with at least
    one assignment describes a command.
    """

    name: str
    fragments: Tuple[RuleFragment, ...] = ()
    conditions: Tuple[Condition, ...] = field(init=False, repr=False, compare=False)
    assignments: Tuple[Assignment, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "fragments", tuple(self.fragments))
        object.__setattr__(self, "conditions", tuple(
            Condition.parse(f.name, f.value) for f in self.fragments if f.type == CONDITION
        ))
        object.__setattr__(self, "assignments", tuple(
            Assignment.parse(f.name, f.value) for f in self.fragments if f.type == ASSIGNMENT
        ))

    @classmethod
    def else_rule(cls, table: str, outcomes: Optional[Dict[str, str]] = None) -> "Rule":
        """
        The synthesized fallback rule of a table.

        Its outcome always contains outcome = "else"; extra outcomes (from
        the trailing else column of a table) are kept.
        """
        values = dict(outcomes or {})
        values["outcome"] = ELSE
        return cls(
            f"{table}::{ELSE}",
            tuple(RuleFragment(OUTCOME, name, value) for name, value in values.items()),
        )

    def check(self, context) -> bool:
        """
        Check whether every condition holds.

        Conditions are evaluated in declaration order and evaluation stops
        at the first one that does not hold, so an earlier condition can
        guard a later one (e.g. a kind check before a numeric comparison).
        """
        result = all(condition.evaluate(context) for condition in self.conditions)
        context.log_computation(EventType.RULE, f"{self.name} => {result}", result)
        return result

    def outcome(self) -> Dict[str, str]:
        return {f.name: f.value for f in self.fragments if f.type == OUTCOME}

    def perform(self, context) -> None:
        """Run all assignments of this rule against the context's state."""
        for assignment in self.assignments:
            assignment.perform_in(context)

    def describes_command(self) -> bool:
        return len(self.assignments) > 0

    def command_args(self) -> List[str]:
        return [arg for a in self.assignments for arg in a.command_args()]

    def test(self, context) -> List[CheckFailure]:
        """
        Self-test this rule.

        Runs the assignments (and the "execute" command, if the rule
        declares one) in an empty-state copy of the context, then checks
        every condition of this rule against that copy.

        Returns:
            One CheckFailure per condition that does not hold; empty if
            the rule behaves as its own conditions describe.
        """
        copy = context.empty_state_copy()
        self.perform(copy)
        outcome = self.outcome()
        if EXECUTE in outcome:
            copy.perform(outcome[EXECUTE])
        copy.reload_tables()
        failures = []
        for condition in self.conditions:
            result, actual = condition.outcome(copy)
            if not result:
                failures.append(CheckFailure(condition.as_string(), actual))
        return failures

    def as_string(self) -> str:
        return self.name


@dataclass(frozen=True)
class DecisionTable:
    """
    An ordered set of rules plus the else-rule.

    INVARIANTS:
        - At most one declared rule may be satisfied in one evaluation;
          more is a modeling defect reported as AmbiguityError
        - Zero satisfied rules always yield the else-rule's outcome
    """

    name: str
    rules: Tuple[Rule, ...] = ()
    else_rule: Optional[Rule] = None

    def __post_init__(self):
        object.__setattr__(self, "rules", tuple(self.rules))
        if self.else_rule is None:
            object.__setattr__(self, "else_rule", Rule.else_rule(self.name))

    def matching_rule(self, context) -> Rule:
        """
        Select the single satisfied rule, or the else-rule.

        Raises:
            AmbiguityError: If more than one rule is satisfied
        """
        matched = [rule for rule in self.rules if rule.check(context)]
        if len(matched) > 1:
            raise AmbiguityError(
                f"Multiple rules are satisfied in table '{self.name}': "
                f"{', '.join(rule.name for rule in matched)}"
            )
        selected = matched[0] if matched else self.else_rule
        context.log_computation(EventType.TABLE, f"{self.name} => {selected.name}", selected.name)
        return selected

    def outcome(self, context) -> Dict[str, str]:
        return self.matching_rule(context).outcome()

    def get_rule(self, name: str) -> Optional[Rule]:
        """
        Retrieve a rule by its full name or by its label.

        Returns:
            Rule object or None if not found
        """
        for rule in self.rules + (self.else_rule,):
            if rule.name == name or rule.name == f"{self.name}::{name}":
                return rule
        return None


class DecisionTables:
    """Ordered, name-addressable collection of DecisionTables."""

    def __init__(self, tables=()):
        self._tables: Dict[str, DecisionTable] = {}
        for table in tables:
            if table.name in self._tables:
                logger.warning("Table '%s' is defined more than once, the last one wins", table.name)
            self._tables[table.name] = table

    def table(self, name: str) -> DecisionTable:
        if name not in self._tables:
            raise ResolutionError(f"Table '{name}' not found")
        return self._tables[name]

    def has_table(self, name: str) -> bool:
        return name in self._tables

    def names(self) -> List[str]:
        return list(self._tables)

    def decision_for(self, name: str, context) -> Dict[str, str]:
        return context.table_outcome(self.table(name))

    def __iter__(self) -> Iterator[DecisionTable]:
        return iter(self._tables.values())

    def __len__(self) -> int:
        return len(self._tables)
