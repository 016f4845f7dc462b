"""Diagnostics and per-root validation results."""

import re
from dataclasses import dataclass, field, replace
from enum import Enum

_RULE_ID_PATTERN = re.compile(r"^([A-Za-z]*)(\d*)(.*)$")
_LINE_LOCATION = re.compile(r"^line (\d+)(?:, column (\d+))?")


class Severity(str, Enum):
    """Diagnostic severity."""
    ERROR = "error"
    WARNING = "warning"


class DiagnosticKind(str, Enum):
    """Error taxonomy for reported conditions."""
    MALFORMED_JSON = "MalformedJson"
    MISSING_ARTIFACT = "MissingArtifact"
    MISSING_IDENTITY = "MissingIdentity"
    STRUCTURAL_VIOLATION = "StructuralViolation"
    IDENTITY_MISMATCH = "IdentityMismatch"
    INVOCATION_ERROR = "InvocationError"


def rule_sort_key(rule_id: str) -> tuple[str, int, str]:
    """Natural ordering for rule ids so that R2 sorts before R10."""
    match = _RULE_ID_PATTERN.match(rule_id)
    prefix, number, rest = match.groups()
    return (prefix, int(number) if number else -1, rest)


def location_sort_key(location: str | None) -> tuple[int, int, int, str]:
    """Order absent locations first, then line positions numerically, then JSON paths.

    >>> location_sort_key("line 9") < location_sort_key("line 10")
    True
    """
    if not location:
        return (0, 0, 0, "")
    match = _LINE_LOCATION.match(location)
    if match:
        line, column = match.groups()
        return (1, int(line), int(column or 0), location)
    return (2, 0, 0, location)


@dataclass(frozen=True)
class Diagnostic:
    """A single reported rule violation or missing-artifact condition."""
    severity: Severity
    rule_id: str
    kind: DiagnosticKind
    message: str
    artifact_path: str
    location: str | None = None
    hint: str | None = None

    def __str__(self) -> str:
        where = self.artifact_path
        if self.location:
            where += f" ({self.location})"
        return f"[{self.severity.value.upper()}] {self.rule_id} {self.kind.value}: {self.message} in {where}"

    @property
    def sort_key(self) -> tuple:
        return (
            self.artifact_path,
            rule_sort_key(self.rule_id),
            location_sort_key(self.location),
            self.message,
        )

    def promoted(self) -> "Diagnostic":
        """Return this diagnostic with warning severity raised to error."""
        if self.severity == Severity.ERROR:
            return self
        return replace(self, severity=Severity.ERROR)

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "ruleId": self.rule_id,
            "kind": self.kind.value,
            "message": self.message,
            "artifactPath": self.artifact_path,
            "location": self.location,
            "hint": self.hint,
        }


@dataclass
class ValidationResult:
    """Ordered diagnostics for one package root."""
    root: str
    diagnostics: list[Diagnostic] = field(default_factory=list)
    counters: dict[str, int] = field(default_factory=dict)
    invocation_error: str | None = None

    @property
    def passed(self) -> bool:
        """True iff no error-severity diagnostic exists and the root was readable."""
        if self.invocation_error is not None:
            return False
        return not any(d.severity == Severity.ERROR for d in self.diagnostics)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity == Severity.WARNING]

    @property
    def exit_code(self) -> int:
        """Exit code for CI: 0 = passed, 1 = errors, 2 = invocation error."""
        if self.invocation_error is not None:
            return 2
        return 0 if self.passed else 1

    def increment_counter(self, name: str, value: int = 1) -> None:
        """Increment a counter."""
        self.counters[name] = self.counters.get(name, 0) + value

    def sort(self) -> None:
        """Order diagnostics by artifact path, then rule id."""
        self.diagnostics.sort(key=lambda d: d.sort_key)

    def promote_warnings(self) -> None:
        """Treat every warning as an error (strict mode)."""
        self.diagnostics = [d.promoted() for d in self.diagnostics]

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON output."""
        return {
            "root": self.root,
            "passed": self.passed,
            "exitCode": self.exit_code,
            "invocationError": self.invocation_error,
            "counters": dict(sorted(self.counters.items())),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


def aggregate_exit_code(results: list[ValidationResult]) -> int:
    """Combine per-root exit codes: invocation errors win over failures."""
    codes = [r.exit_code for r in results]
    if 2 in codes:
        return 2
    if 1 in codes:
        return 1
    return 0
