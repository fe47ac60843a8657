"""
Source Parser (Raw tagged lines -> DecisionTable).

Table format, one record per line:
    <TAG>;<subject>;<value rule 1>;<value rule 2>;...

    TAG is one of:
        HDR  table name and rule labels
        CND  condition row, subject is a coordinate ("market::shop")
        OUT  outcome row, subject is the outcome name
        ASG  assignment row, subject is the target coordinate

Tables are stored TRANSPOSED: a row is a subject, a column is a rule.

Example:
    CND;market::shop;<3;>2
    OUT;outcome;open;closed;else
    OUT;text;hello;bye;no rule satisfied

The OUT (and HDR) rows may carry one extra trailing column: the values of
the else-rule.
"""

import csv
import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from decita.errors import ConfigurationError
from decita.model import (
    ASSIGNMENT,
    CONDITION,
    HEADER,
    OUTCOME,
    DecisionTable,
    DecisionTables,
    Rule,
    RuleFragment,
)

logger = logging.getLogger(__name__)

TAGS = (HEADER, CONDITION, OUTCOME, ASSIGNMENT)
RULE_TAGS = (CONDITION, OUTCOME, ASSIGNMENT)


@dataclass(frozen=True)
class RawRecord:
    """One parsed source line."""
    tag: str
    name: str
    values: Tuple[str, ...] = ()

    @property
    def width(self) -> int:
        return len(self.values)


def parse_record(line: str, delimiter: str = ";") -> RawRecord:
    """
    Split one tagged line into a RawRecord.

    Raises:
        ConfigurationError: If the tag is unknown or the subject is missing
    """
    try:
        fields = next(csv.reader([line], delimiter=delimiter))
    except (csv.Error, TypeError) as e:
        raise ConfigurationError(f"Cannot parse line '{line}': {e}")
    if not fields or fields[0].strip() not in TAGS:
        raise ConfigurationError(f"Unknown tag in line '{line}', expected one of {TAGS}")
    if len(fields) < 2 or not fields[1].strip():
        raise ConfigurationError(f"Missing subject name in line '{line}'")
    return RawRecord(
        tag=fields[0].strip(),
        name=fields[1].strip(),
        values=tuple(v.strip() for v in fields[2:]),
    )


@dataclass
class SourceLines:
    """
    Records of one table source, grouped by tag in source order.

    Properties:
        name: Source name (usually the file name without extension)
        groups: Tag -> records with that tag
    """

    name: str
    groups: Dict[str, List[RawRecord]] = field(default_factory=dict)

    @classmethod
    def from_lines(cls, lines: Iterable[str], name: str, delimiter: str = ";") -> "SourceLines":
        if len(delimiter) != 1:
            raise ConfigurationError(f"Delimiter must be a single character, got '{delimiter}'")
        groups: Dict[str, List[RawRecord]] = {tag: [] for tag in TAGS}
        for line_num, line in enumerate(lines, start=1):
            line = line.rstrip("\r\n")
            if not line.strip():
                continue
            if line.lstrip().startswith("#"):
                logger.debug("Skipping comment at %s:%d", name, line_num)
                continue
            record = parse_record(line, delimiter)
            groups[record.tag].append(record)
        source = cls(name=name, groups=groups)
        source._validate()
        return source

    def records(self, tag: str) -> List[RawRecord]:
        return self.groups.get(tag, [])

    def width(self, tag: str) -> Optional[int]:
        """Common number of values of a tag group, None if the group is empty."""
        records = self.records(tag)
        return records[0].width if records else None

    @property
    def rule_count(self) -> int:
        for tag in (CONDITION, ASSIGNMENT, OUTCOME):
            width = self.width(tag)
            if width is not None:
                return width
        return 0

    @property
    def table_name(self) -> str:
        headers = self.records(HEADER)
        return headers[0].name if headers else self.name

    def _validate(self) -> None:
        for tag in TAGS:
            widths = {r.width for r in self.records(tag)}
            if len(widths) > 1:
                raise ConfigurationError(
                    f"Uneven {tag} rows in table '{self.name}': widths {sorted(widths)}"
                )
        if len(self.records(HEADER)) > 1:
            raise ConfigurationError(f"More than one {HEADER} row in table '{self.name}'")
        count = self.rule_count
        for tag in (CONDITION, ASSIGNMENT):
            width = self.width(tag)
            if width is not None and width != count:
                raise ConfigurationError(
                    f"Table '{self.name}' has {count} rules but {tag} rows have {width} values"
                )
        for tag in (HEADER, OUTCOME):
            width = self.width(tag)
            if width is not None and width not in (count, count + 1):
                raise ConfigurationError(
                    f"Table '{self.name}' has {count} rules but {tag} rows have {width} values"
                )

    def label(self, idx: int) -> str:
        """Rule name for value column idx (zero based)."""
        headers = self.records(HEADER)
        if headers and idx < headers[0].width and headers[0].values[idx]:
            return f"{headers[0].name}::{headers[0].values[idx]}"
        return f"{self.name}::rule_{idx:02d}"

    def fragments(self, idx: int) -> List[RuleFragment]:
        """Slice value column idx out of every row: conditions, outcomes, assignments."""
        result = []
        for tag in RULE_TAGS:
            for record in self.records(tag):
                value = record.values[idx]
                if tag == ASSIGNMENT and not value:
                    continue
                result.append(RuleFragment(tag, record.name, value))
        return result

    def else_outcomes(self) -> Dict[str, str]:
        count = self.rule_count
        return {
            r.name: r.values[count]
            for r in self.records(OUTCOME)
            if r.width > count
        }

    def as_decision_table(self) -> DecisionTable:
        name = self.table_name
        rules = [Rule(self.label(idx), self.fragments(idx)) for idx in range(self.rule_count)]
        return DecisionTable(
            name=name,
            rules=rules,
            else_rule=Rule.else_rule(name, self.else_outcomes()),
        )


def parse_table(lines: Iterable[str], name: str, delimiter: str = ";") -> DecisionTable:
    """
    Parse tagged lines into a DecisionTable.

    Args:
        lines: Source lines
        name: Source name, used when there is no HDR row
        delimiter: Field delimiter (single character)

    Raises:
        ConfigurationError: If the source is malformed
    """
    return SourceLines.from_lines(lines, name, delimiter).as_decision_table()


def parse_table_file(filepath: str, delimiter: str = ";") -> DecisionTable:
    """
    Parse a table file. The source name is the file name without extension.

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigurationError: If the source is malformed
    """
    name = os.path.splitext(os.path.basename(filepath))[0]
    with open(filepath, "r", encoding="utf-8") as f:
        return parse_table(f.read().splitlines(), name, delimiter)


def read_tables(directory: str, extension: str = ".csv", delimiter: str = ";") -> DecisionTables:
    """Parse every table file in a directory, in file name order."""
    if not os.path.isdir(directory):
        raise ConfigurationError(f"Tables directory not found: {directory}")
    files = sorted(f for f in os.listdir(directory) if f.endswith(extension))
    logger.info("Reading %d table(s) from %s", len(files), directory)
    return DecisionTables(
        parse_table_file(os.path.join(directory, f), delimiter) for f in files
    )


__all__ = [
    "RawRecord",
    "SourceLines",
    "parse_record",
    "parse_table",
    "parse_table_file",
    "read_tables",
]
