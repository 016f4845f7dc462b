"""Unit tests for the nodelint CLI."""

import json

from typer.testing import CliRunner

from nodelint import __version__
from nodelint.cli import app

runner = CliRunner()


class TestVersion:
    """Test version option."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert f"nodelint version {__version__}" in result.output


class TestValidateCommand:
    """Test the validate command and its exit codes."""

    def test_valid_package_exits_zero(self, valid_package):
        result = runner.invoke(app, ["validate", str(valid_package)])

        assert result.exit_code == 0
        assert "PASS" in result.output
        assert "1 root(s) checked: 1 passed, 0 failed" in result.output

    def test_violation_exits_one(self, make_package):
        root = make_package({"node/foo/manifest.json": {"modules": ["./foo"], "preload": "foo"}})
        result = runner.invoke(app, ["validate", str(root)])

        assert result.exit_code == 1
        assert "FAIL" in result.output
        assert "R1" in result.output

    def test_missing_root_exits_two(self, valid_package, tmp_path):
        result = runner.invoke(app, ["validate", str(valid_package), str(tmp_path / "missing")])

        assert result.exit_code == 2

    def test_json_output(self, make_package):
        root = make_package({"node/foo/foo.mcu.js": 'class X {\n    static type = "foo";\n}\n'})
        result = runner.invoke(app, ["validate", str(root), "--format", "json"])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        diagnostics = data["results"][0]["diagnostics"]
        assert [d["ruleId"] for d in diagnostics] == ["R7"]
        assert diagnostics[0]["artifactPath"] == "node/foo/foo.mcu.js"

    def test_warning_only_exits_zero(self, make_package):
        root = make_package({"node/foo/locales/en-US/foo.json": None})
        result = runner.invoke(app, ["validate", str(root)])

        assert result.exit_code == 0

    def test_strict_promotes_warning(self, make_package):
        root = make_package({"node/foo/locales/en-US/foo.json": None})
        result = runner.invoke(app, ["validate", str(root), "--strict", "--format", "json"])

        assert result.exit_code == 1
        data = json.loads(result.stdout)
        assert data["results"][0]["diagnostics"][0]["severity"] == "error"

    def test_config_file_option(self, make_package, tmp_path):
        root = make_package({"node/foo/locales/en-US/foo.json": None})
        config_file = tmp_path / "lint.json"
        config_file.write_text(json.dumps({"rules": {"strict": True}}), encoding="utf-8")

        result = runner.invoke(app, ["validate", str(root), "--config", str(config_file)])

        assert result.exit_code == 1

    def test_config_found_in_root(self, make_package):
        root = make_package({".nodelint.json": {"output": {"format": "json"}}})
        result = runner.invoke(app, ["validate", str(root)])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["passed"] is True

    def test_invalid_config_exits_two(self, make_package):
        root = make_package({".nodelint.json": {"unknown": True}})
        result = runner.invoke(app, ["validate", str(root)])

        assert result.exit_code == 2

    def test_missing_config_file_exits_two(self, valid_package, tmp_path):
        result = runner.invoke(app, ["validate", str(valid_package), "--config", str(tmp_path / "none.json")])

        assert result.exit_code == 2

    def test_invalid_format_exits_two(self, valid_package):
        result = runner.invoke(app, ["validate", str(valid_package), "--format", "xml"])

        assert result.exit_code == 2

    def test_invalid_jobs_exits_two(self, valid_package):
        result = runner.invoke(app, ["validate", str(valid_package), "--jobs", "0"])

        assert result.exit_code == 2

    def test_several_roots_with_jobs(self, make_package):
        first = make_package(name="first")
        second = make_package(name="second")
        result = runner.invoke(app, ["validate", str(first), str(second), "--jobs", "2", "-f", "json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert [r["root"] for r in data["results"]] == [str(first), str(second)]

    def test_no_roots_is_usage_error(self):
        result = runner.invoke(app, ["validate"])

        assert result.exit_code == 2


class TestRulesCommand:
    """Test the rules command."""

    def test_rules_json(self):
        result = runner.invoke(app, ["rules", "--format", "json"])

        assert result.exit_code == 0
        ids = [rule["id"] for rule in json.loads(result.stdout)]
        assert ids == ["J1", "P1", "P2", "R1", "R2", "R3", "R4", "R5", "R6", "R7", "R8", "R9"]

    def test_rules_text(self):
        result = runner.invoke(app, ["rules"])

        assert result.exit_code == 0
        assert "R9" in result.output
