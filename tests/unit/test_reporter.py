"""Unit tests for text and JSON rendering."""

import io
import json

from rich.console import Console

from nodelint.models.diagnostic import Diagnostic, DiagnosticKind, Severity, ValidationResult
from nodelint.output.reporter import render_json, render_rules_json, render_rules_text, render_text
from nodelint.validation.rules import RULE_CATALOG


def _console(width=200):
    return Console(file=io.StringIO(), width=width, color_system=None)


def _results():
    failing = ValidationResult(root="pkg-a", diagnostics=[
        Diagnostic(Severity.ERROR, "R1", DiagnosticKind.STRUCTURAL_VIOLATION,
                   "Device manifest 'modules' must be a JSON object, found array",
                   "node/foo/manifest.json", location="modules", hint="Write modules as an object."),
    ])
    passing = ValidationResult(root="pkg-b")
    broken = ValidationResult(root="pkg-c", invocation_error="path does not exist")
    return [failing, passing, broken]


class TestRenderJson:
    """Test machine-readable output."""

    def test_structure(self):
        data = json.loads(render_json(_results()))

        assert data["passed"] is False
        assert data["exitCode"] == 2
        assert [r["root"] for r in data["results"]] == ["pkg-a", "pkg-b", "pkg-c"]
        diagnostic = data["results"][0]["diagnostics"][0]
        assert diagnostic == {
            "severity": "error",
            "ruleId": "R1",
            "kind": "StructuralViolation",
            "message": "Device manifest 'modules' must be a JSON object, found array",
            "artifactPath": "node/foo/manifest.json",
            "location": "modules",
            "hint": "Write modules as an object.",
        }
        assert data["results"][2]["invocationError"] == "path does not exist"

    def test_stable(self):
        assert render_json(_results()) == render_json(_results())


class TestRenderText:
    """Test human-readable output."""

    def test_render(self):
        console = _console()
        render_text(_results(), console)
        output = console.file.getvalue()

        assert "FAIL pkg-a" in output
        assert "PASS pkg-b" in output
        assert "ERROR pkg-c: path does not exist" in output
        assert "node/foo/manifest.json (modules)" in output
        assert "hint: Write modules as an object." in output
        assert "3 root(s) checked: 1 passed, 2 failed" in output

    def test_without_hints(self):
        console = _console()
        render_text(_results(), console, show_hints=False)

        assert "hint:" not in console.file.getvalue()

    def test_markup_in_message_escaped(self):
        """Test bracketed text in messages is printed literally."""
        result = ValidationResult(root="pkg", diagnostics=[
            Diagnostic(Severity.WARNING, "P2", DiagnosticKind.MISSING_ARTIFACT,
                       "expected [bold]locales[/bold]", "node/foo/foo.js"),
        ])
        console = _console()
        render_text([result], console)

        assert "[bold]locales[/bold]" in console.file.getvalue()


class TestRenderRules:
    """Test rule catalog listing."""

    def test_rules_json(self):
        data = json.loads(render_rules_json(list(RULE_CATALOG)))

        assert [r["id"] for r in data] == [r.id for r in RULE_CATALOG]
        r4 = data[6]
        assert r4["name"] == "descriptor-points-to-stub"
        assert r4["severity"] == "error"
        assert r4["appliesTo"] == ["package-descriptor"]

    def test_rules_text(self):
        console = _console(width=400)
        render_rules_text(list(RULE_CATALOG), console)
        output = console.file.getvalue()

        assert "mandatory-artifact" in output
        assert "markup-includes-manifest" in output
