"""
Condition Language for decision tables

Every condition cell in a table is a tiny expression applied to the
value of the row's subject:

    cell   := '!'? body
    body   := '~' | ('>'|'<') literal | literal

    ~        always matches ("don't care")
    >5, <20  numeric comparison, both sides must be numbers
    Eugene   exact, case-sensitive string equality
    !...     inverts the body

Cells are parsed once into immutable ConditionCell objects, then bound to
a Coordinate (the row subject) to form a Condition.

ARCHITECTURAL RULE:
    Values are compared as strings. Whatever a locator stores, it is
    rendered to text before it reaches a cell.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from decita.errors import ComputationError
from decita.tracking import EventType

CONSTANT = "constant"
SEPARATOR = "::"


@dataclass(frozen=True)
class Coordinate:
    """
    Address of a single piece of runtime state.

    Properties:
        locator: Name of the locator the fragment lives in
        fragment: Name of the fragment inside that locator

    Textual form is "locator::fragment". A subject without the separator
    is a constant and resolves to its own text:

        Coordinate.parse("market::shop")  -> ("market", "shop")
        Coordinate.parse("10")            -> ("constant", "10")
    """

    locator: str
    fragment: str

    @classmethod
    def parse(cls, text: str) -> "Coordinate":
        text = text.strip()
        if SEPARATOR in text:
            locator, fragment = text.split(SEPARATOR, 1)
            return cls(locator.strip(), fragment.strip())
        return cls(CONSTANT, text)

    def is_constant(self) -> bool:
        return self.locator == CONSTANT

    def value_in(self, context) -> str:
        """Resolve this coordinate through a computation context."""
        return context.value_for(self)

    def as_string(self) -> str:
        if self.is_constant():
            return self.fragment
        return f"{self.locator}{SEPARATOR}{self.fragment}"


class Operator(Enum):
    """
    Operators of the cell grammar.

    EQUALS has no symbol: a bare literal is an equality check.
    """

    ANY = "~"
    GREATER_THAN = ">"
    LESS_THAN = "<"
    EQUALS = ""


def _as_number(text: str, cell: str) -> float:
    try:
        return float(text)
    except (TypeError, ValueError):
        raise ComputationError(
            f"Cannot compare '{text}' numerically in condition '{cell}'"
        )


@dataclass(frozen=True)
class ConditionCell:
    """
    One parsed condition cell.

    Properties:
        operator: Operator enum
        literal: Right-hand operand (empty for ANY)
        negated: True if the cell starts with '!'
    """

    operator: Operator
    literal: str = ""
    negated: bool = False

    @classmethod
    def parse(cls, text: str) -> "ConditionCell":
        """
        Parse a cell string into a ConditionCell.

        Only one leading '!' is an operator, anything after it is the body:
        "!!x" is the negated literal "!x".
        """
        negated = text.startswith("!")
        body = text[1:] if negated else text
        if body == Operator.ANY.value:
            return cls(Operator.ANY, "", negated)
        if body[:1] == Operator.GREATER_THAN.value:
            return cls(Operator.GREATER_THAN, body[1:], negated)
        if body[:1] == Operator.LESS_THAN.value:
            return cls(Operator.LESS_THAN, body[1:], negated)
        return cls(Operator.EQUALS, body, negated)

    def matches(self, value: str) -> bool:
        """
        Apply this cell to a resolved value.

        Raises:
            ComputationError: If a numeric comparison gets a non-number
        """
        if self.operator is Operator.ANY:
            result = True
        elif self.operator is Operator.GREATER_THAN:
            result = _as_number(value, self.as_string()) > _as_number(self.literal, self.as_string())
        elif self.operator is Operator.LESS_THAN:
            result = _as_number(value, self.as_string()) < _as_number(self.literal, self.as_string())
        else:
            result = value == self.literal
        return not result if self.negated else result

    def as_string(self) -> str:
        prefix = "!" if self.negated else ""
        return f"{prefix}{self.operator.value}{self.literal}"


@dataclass(frozen=True)
class Condition:
    """
    A condition cell bound to the subject it is checked against.

    Example:
        CND;market::shop;<3

    Becomes:
        Condition(
            coordinate=Coordinate("market", "shop"),
            cell=ConditionCell(Operator.LESS_THAN, "3"),
        )

    IMPORTANT:
        Evaluation reports to the context's trace sink. The trace is
        observational only and never changes the result.
    """

    coordinate: Coordinate
    cell: ConditionCell

    @classmethod
    def parse(cls, subject: str, cell: str) -> "Condition":
        return cls(Coordinate.parse(subject), ConditionCell.parse(cell))

    def outcome(self, context) -> Tuple[bool, str]:
        """Resolve the subject and apply the cell; returns (result, actual value)."""
        actual = self.coordinate.value_in(context)
        result = self.cell.matches(actual)
        context.log_computation(EventType.CONDITION, f"{self.as_string()} => {result}", result)
        return result, actual

    def evaluate(self, context) -> bool:
        return self.outcome(context)[0]

    def as_string(self) -> str:
        return f"{self.coordinate.as_string()} {self.cell.as_string()}"
