"""Violation records and the reporter that orders them."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


class Severity(enum.Enum):
    """How serious a finding is.  Every constraint failure is currently a violation."""

    VIOLATION = "http://www.w3.org/ns/shacl#Violation"

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class ViolationRecord:
    """A single constraint violation.

    Equality and hashing cover the five reported fields only;
    ``rule_name`` is carried along for diagnostics.
    """

    message: str
    focus_node: str
    result_path: str
    severity: Severity
    value: str
    rule_name: str = field(default="", compare=False)

    def sort_key(self) -> tuple[str, str, str]:
        return (self.focus_node, self.result_path, self.value)


def report(records: Iterable[ViolationRecord]) -> list[ViolationRecord]:
    """Return *records* stably sorted by focus node, result path and offending value."""
    return sorted(records, key=ViolationRecord.sort_key)
