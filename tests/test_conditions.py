"""
Tests for the condition cell language.

Grammar:
    cell := '!'? body
    body := '~' | ('>'|'<') literal | literal

These tests verify:
    - Cell parsing
    - Matching semantics (wildcard, numeric, equality, negation)
    - Coordinate parsing
    - Condition evaluation through a context, including tracing
"""

import pytest
from decita.conditions import Condition, ConditionCell, Coordinate, Operator
from decita.context import ComputationContext, StoredState
from decita.errors import ComputationError, ResolutionError
from decita.tracking import EventType


def matches(cell: str, value: str) -> bool:
    return ConditionCell.parse(cell).matches(value)


class TestCellParsing:
    """Test turning cell strings into ConditionCells."""

    def test_wildcard(self):
        cell = ConditionCell.parse("~")
        assert cell.operator == Operator.ANY
        assert not cell.negated

    def test_negated_greater_than(self):
        cell = ConditionCell.parse("!>5")
        assert cell.operator == Operator.GREATER_THAN
        assert cell.literal == "5"
        assert cell.negated

    def test_bare_literal(self):
        cell = ConditionCell.parse("Eugene")
        assert cell.operator == Operator.EQUALS
        assert cell.literal == "Eugene"

    def test_only_first_bang_is_an_operator(self):
        cell = ConditionCell.parse("!!x")
        assert cell.negated
        assert cell.operator == Operator.EQUALS
        assert cell.literal == "!x"

    def test_as_string_restores_source(self):
        for text in ["~", "!~", ">5", "!<30", "true", "!false"]:
            assert ConditionCell.parse(text).as_string() == text

    def test_cell_immutable(self):
        cell = ConditionCell.parse("~")
        with pytest.raises(AttributeError):
            cell.literal = "x"


class TestMatching:
    """Test cell semantics against resolved values."""

    @pytest.mark.parametrize("value", ["", "anything", "10", "false"])
    def test_wildcard_always_matches(self, value):
        assert matches("~", value)
        assert not matches("!~", value)

    def test_greater_than(self):
        assert matches(">5", "10")
        assert not matches(">5", "3")
        assert not matches(">5", "5")

    def test_negated_greater_than_is_complement(self):
        for value in ["10", "3", "5", "-1", "5.5"]:
            assert matches("!>5", value) == (not matches(">5", value))

    def test_less_than(self):
        assert matches("<20", "10")
        assert not matches("<20", "30")

    def test_numeric_comparison_of_decimals(self):
        assert matches(">2.5", "3")
        assert matches("<0", "-0.5")

    def test_literal_equality(self):
        assert matches("true", "true")
        assert not matches("true", "false")

    def test_literal_is_case_sensitive(self):
        assert not matches("Eugene", "eugene")

    def test_negated_literal(self):
        assert matches("!false", "true")
        assert not matches("!false", "false")

    def test_non_numeric_value_fails(self):
        with pytest.raises(ComputationError, match="numerically"):
            matches(">5", "many")

    def test_non_numeric_literal_fails(self):
        with pytest.raises(ComputationError):
            matches("<abc", "10")


class TestCoordinate:
    """Test coordinate parsing."""

    def test_locator_and_fragment(self):
        coordinate = Coordinate.parse("market::shop")
        assert coordinate.locator == "market"
        assert coordinate.fragment == "shop"
        assert not coordinate.is_constant()

    def test_constant(self):
        coordinate = Coordinate.parse("10")
        assert coordinate == Coordinate("constant", "10")
        assert coordinate.is_constant()
        assert coordinate.as_string() == "10"

    def test_only_first_separator_splits(self):
        coordinate = Coordinate.parse("table::a::b")
        assert coordinate.locator == "table"
        assert coordinate.fragment == "a::b"


class TestConditionEvaluation:
    """Test conditions evaluated through a context."""

    def test_against_stored_state(self):
        context = ComputationContext(StoredState.from_dict({"market": {"shop": 2}}))
        assert Condition.parse("market::shop", "<3").evaluate(context)
        assert not Condition.parse("market::shop", ">3").evaluate(context)

    def test_constant_subject(self):
        context = ComputationContext()
        assert Condition.parse("10", "!>5").evaluate(context) is False
        assert Condition.parse("true", "!false").evaluate(context) is True

    def test_boolean_state_is_compared_as_text(self):
        context = ComputationContext(StoredState.from_dict({"data": {"is-stored": False}}))
        assert Condition.parse("data::is-stored", "false").evaluate(context)

    def test_outcome_reports_actual_value(self):
        context = ComputationContext(StoredState.from_dict({"data": {"value": 7}}))
        assert Condition.parse("data::value", "1").outcome(context) == (False, "7")

    def test_evaluation_is_traced(self):
        context = ComputationContext(StoredState.from_dict({"data": {"value": 1}}))
        Condition.parse("data::value", "1").evaluate(context)
        events = context.tracker.of_kind(EventType.CONDITION)
        assert len(events) == 1
        assert events[0].description == "data::value 1 => True"
        assert events[0].result is True

    def test_unknown_locator_fails(self):
        with pytest.raises(ResolutionError, match="Locator 'nowhere'"):
            Condition.parse("nowhere::x", "~").evaluate(ComputationContext())

    def test_missing_fragment_fails_even_for_wildcard(self):
        context = ComputationContext(StoredState.from_dict({"data": {}}))
        with pytest.raises(ResolutionError, match="Fragment 'x'"):
            Condition.parse("data::x", "~").evaluate(context)
