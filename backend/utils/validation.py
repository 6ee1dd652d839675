"""Declarative per-field rules shared by the API and the form controller.

A rule set maps field names to :class:`FieldRule`. Rules are checked in a
fixed precedence (required, min length, max length, pattern) and only the
first failure is reported, so a field never carries more than one message.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field


RULE_PRECEDENCE = ("required", "min_length", "max_length", "pattern")

NAME_PATTERN = re.compile(r"[가-힣a-zA-Z\s]+")
PHONE_PATTERN = re.compile(r"\d{3}-\d{4}-\d{4}|\d{11}|01\d-\d{3,4}-\d{4}", re.ASCII)


@dataclass(frozen=True)
class FieldRule:
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    pattern: re.Pattern[str] | None = None
    messages: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for bound in (self.min_length, self.max_length):
            if bound is not None and bound < 0:
                raise ValueError("Length bounds must not be negative.")
        if (
            self.min_length is not None
            and self.max_length is not None
            and self.min_length > self.max_length
        ):
            raise ValueError("min_length must not exceed max_length.")

        missing = [kind for kind in self.kinds() if not self.messages.get(kind)]
        if missing:
            raise ValueError(f"Missing error messages for rule kinds: {', '.join(missing)}")

    def kinds(self) -> list[str]:
        configured = {
            "required": self.required,
            "min_length": self.min_length is not None,
            "max_length": self.max_length is not None,
            "pattern": self.pattern is not None,
        }
        return [kind for kind in RULE_PRECEDENCE if configured[kind]]


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    message: str | None = None


class FormValidationReport(Mapping[str, ValidationResult]):
    def __init__(self, results: dict[str, ValidationResult]) -> None:
        self._results = dict(results)

    def __getitem__(self, name: str) -> ValidationResult:
        return self._results[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._results)

    def __len__(self) -> int:
        return len(self._results)

    @property
    def is_valid(self) -> bool:
        return all(result.valid for result in self._results.values())

    def errors(self) -> list[tuple[str, str]]:
        return [
            (name, result.message or "")
            for name, result in self._results.items()
            if not result.valid
        ]

    def first_invalid(self) -> str | None:
        for name, result in self._results.items():
            if not result.valid:
                return name
        return None


def check_value(rule: FieldRule, value: str | None) -> ValidationResult:
    text = (value or "").strip()

    if not text:
        if rule.required:
            return ValidationResult(False, rule.messages["required"])
        return ValidationResult(True)

    if rule.min_length is not None and len(text) < rule.min_length:
        return ValidationResult(False, rule.messages["min_length"])
    if rule.max_length is not None and len(text) > rule.max_length:
        return ValidationResult(False, rule.messages["max_length"])
    if rule.pattern is not None and not rule.pattern.fullmatch(text):
        return ValidationResult(False, rule.messages["pattern"])
    return ValidationResult(True)


def validate_values(
    rules: Mapping[str, FieldRule],
    values: Mapping[str, str | None],
) -> FormValidationReport:
    return FormValidationReport({name: check_value(rule, values.get(name)) for name, rule in rules.items()})
