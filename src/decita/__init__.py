"""
Decision table engine.

Tabular rules (conditions, outcomes, assignments) are evaluated against a
pool of named state sources. A table either yields a mapping of outcome
values or, for command rules, changes the state.

ARCHITECTURAL GUARANTEE:
------------------------
    - Exactly one rule of a table may be satisfied, otherwise the
      else-rule applies; two satisfied rules are an error
    - Rules and tables never change after loading
    - State changes only through assignments
    - Every rule can self-test on an isolated copy of the state
"""

from decita.commands import CommandBackend, TableCommands, Transition
from decita.conditions import Condition, ConditionCell, Coordinate, Operator
from decita.config import EngineConfig, load_config
from decita.context import ComputationContext, StoredState
from decita.errors import (
    AmbiguityError,
    ComputationError,
    ConfigurationError,
    DecitaError,
    ResolutionError,
)
from decita.facade import Computation, DecitaFacade
from decita.locators import (
    ConditionsLocator,
    ConstantLocator,
    InMemoryLocator,
    Locator,
    RequestLocator,
    TableLocator,
)
from decita.model import CheckFailure, DecisionTable, DecisionTables, Rule, RuleFragment
from decita.source import parse_table, parse_table_file, read_tables
from decita.verification import SelfTestReport, verify_tables

__version__ = "0.1.0"
