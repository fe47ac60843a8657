"""
Self-test runner for decision tables.

Every rule is its own test: its assignments (and "execute" command) are
replayed against an empty copy of the state, then its conditions are
re-checked. This module runs that check over whole table collections and
collects the results into a read-only report.

IMPORTANT: The live state is never touched. Rule.test works on
ComputationContext.empty_state_copy().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List

from decita.errors import DecitaError
from decita.model import CheckFailure

logger = logging.getLogger(__name__)


@dataclass
class SelfTestReport:
    """Results of self-testing a set of tables."""

    total_tables: int = 0
    total_rules: int = 0

    passed_rules: List[str] = field(default_factory=list)
    failures: Dict[str, List[CheckFailure]] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def passed(self) -> bool:
        return not self.failures and not self.errors

    def summary(self) -> str:
        lines = [
            f"{len(self.passed_rules)}/{self.total_rules} rule(s) passed "
            f"in {self.total_tables} table(s)"
        ]
        for rule, failures in self.failures.items():
            lines.append(f"FAILED {rule}")
            for failure in failures:
                lines.append(f"  {failure.condition} (actual: '{failure.actual}')")
        for rule, message in self.errors.items():
            lines.append(f"ERROR {rule}: {message}")
        return "\n".join(lines)


def verify_tables(tables, context) -> SelfTestReport:
    """
    Self-test every declared rule of every table.

    A DecitaError raised while testing one rule is recorded against that
    rule and the run continues with the next one.

    Args:
        tables: Iterable of DecisionTables to test
        context: ComputationContext the tests are based on (only its
            empty-state copies are used)

    Returns a SelfTestReport.
    """
    report = SelfTestReport()
    for table in tables:
        report.total_tables += 1
        for rule in table.rules:
            report.total_rules += 1
            try:
                failures = rule.test(context)
            except DecitaError as e:
                logger.warning("Self-test of '%s' raised: %s", rule.name, e)
                report.errors[rule.name] = str(e)
                continue
            if failures:
                report.failures[rule.name] = failures
            else:
                report.passed_rules.append(rule.name)
    logger.info("Self-test finished: %d/%d passed", len(report.passed_rules), report.total_rules)
    return report
