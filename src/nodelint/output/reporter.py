"""Rendering of validation results.

Formatting only: nothing here changes diagnostics or verdicts.
"""

import json

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from nodelint.models.diagnostic import Severity, ValidationResult, aggregate_exit_code
from nodelint.validation.framework import RuleSpec

_SEVERITY_STYLE = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
}


def results_to_dict(results: list[ValidationResult]) -> dict:
    """Machine-readable form of a batch of results."""
    return {
        "passed": all(r.passed for r in results),
        "exitCode": aggregate_exit_code(results),
        "results": [r.to_dict() for r in results],
    }


def render_json(results: list[ValidationResult]) -> str:
    """Stable JSON rendering (fixed key order, two-space indent)."""
    return json.dumps(results_to_dict(results), indent=2, ensure_ascii=False)


def render_text(results: list[ValidationResult], console: Console, show_hints: bool = True) -> None:
    """Human-readable rendering with one table per root."""
    for result in results:
        if result.invocation_error is not None:
            console.print(f"[red]ERROR[/red] {escape(result.root)}: {escape(result.invocation_error)}")
            continue

        status = "[green]PASS[/green]" if result.passed else "[red]FAIL[/red]"
        console.print(
            f"{status} {escape(result.root)} "
            f"[dim]({len(result.errors)} error(s), {len(result.warnings)} warning(s))[/dim]"
        )
        if not result.diagnostics:
            continue

        table = Table(show_header=True, header_style="bold")
        table.add_column("Severity", style="white")
        table.add_column("Rule", style="cyan")
        table.add_column("Kind", style="white")
        table.add_column("Location", style="dim")
        table.add_column("Message", style="white")

        for diagnostic in result.diagnostics:
            color = _SEVERITY_STYLE[diagnostic.severity]
            location = escape(diagnostic.artifact_path)
            if diagnostic.location:
                location += f" ({escape(diagnostic.location)})"
            message = escape(diagnostic.message)
            if show_hints and diagnostic.hint:
                message += f"\n[dim]hint: {escape(diagnostic.hint)}[/dim]"
            table.add_row(
                f"[{color}]{diagnostic.severity.value.upper()}[/{color}]",
                diagnostic.rule_id,
                diagnostic.kind.value,
                location,
                message,
            )
        console.print(table)

    passed = sum(1 for r in results if r.passed)
    console.print(
        f"\n{len(results)} root(s) checked: {passed} passed, {len(results) - passed} failed"
    )


def render_rules_text(rules: list[RuleSpec], console: Console) -> None:
    """Table of the rule catalog."""
    table = Table(title="nodelint rules")
    table.add_column("Id", style="cyan")
    table.add_column("Name", style="white")
    table.add_column("Severity", style="white")
    table.add_column("Kind", style="white")
    table.add_column("Applies to", style="dim")
    table.add_column("Summary", style="white")

    for rule in rules:
        color = _SEVERITY_STYLE[rule.severity]
        table.add_row(
            rule.id,
            rule.name,
            f"[{color}]{rule.severity.value}[/{color}]",
            rule.kind.value,
            ", ".join(kind.value for kind in rule.kinds),
            rule.summary,
        )
    console.print(table)


def render_rules_json(rules: list[RuleSpec]) -> str:
    return json.dumps([
        {
            "id": rule.id,
            "name": rule.name,
            "severity": rule.severity.value,
            "kind": rule.kind.value,
            "appliesTo": [kind.value for kind in rule.kinds],
            "summary": rule.summary,
            "hint": rule.hint,
        }
        for rule in rules
    ], indent=2)
