"""Core validation framework for nodelint.

Rules are data: each ``RuleSpec`` names the artifact kinds it applies to, the
diagnostic kind and severity it reports, a remediation hint and a check
function. ``ValidationFramework`` is a single generic loop over the catalog.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from ..config import NodelintConfig, RulesConfig
from ..models.artifact import ArtifactKind, PackageRoot
from ..models.diagnostic import Diagnostic, DiagnosticKind, Severity, ValidationResult
from ..parser.extractors import CrossReferenceExtractor, FactSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Finding:
    """A rule violation before it is turned into a Diagnostic."""
    artifact_path: str
    message: str
    location: str | None = None
    kind: DiagnosticKind | None = None
    severity: Severity | None = None
    hint: str | None = None


@dataclass
class RuleContext:
    """Everything a rule check may look at for one package root."""
    package: PackageRoot
    facts: FactSet
    settings: RulesConfig = field(default_factory=RulesConfig)


@dataclass(frozen=True)
class RuleSpec:
    """One entry of the rule catalog."""
    id: str
    name: str
    kinds: tuple[ArtifactKind, ...]
    kind: DiagnosticKind
    severity: Severity
    summary: str
    hint: str
    check: Callable[[RuleContext], Iterable[Finding]]

    def to_diagnostic(self, finding: Finding) -> Diagnostic:
        return Diagnostic(
            severity=finding.severity or self.severity,
            rule_id=self.id,
            kind=finding.kind or self.kind,
            message=finding.message,
            artifact_path=finding.artifact_path,
            location=finding.location,
            hint=finding.hint or self.hint,
        )


class ValidationFramework:
    """Evaluates the rule catalog against one package root."""

    def __init__(self, config: NodelintConfig | None = None):
        self.config = config or NodelintConfig()
        self.rules: list[RuleSpec] = []
        self.extractor = CrossReferenceExtractor(
            device_module=self.config.rules.device_module,
            manifest_include_marker=self.config.rules.manifest_include_marker,
            script_suffixes=self.config.rules.script_suffixes,
        )

    def add_rule(self, rule: RuleSpec) -> None:
        """Add a validation rule."""
        self.rules.append(rule)

    def create_default_rules(self) -> None:
        """Register every catalog rule not disabled in the configuration."""
        from .rules import RULE_CATALOG

        disabled = {rule_id.upper() for rule_id in self.config.rules.disabled}
        for rule in RULE_CATALOG:
            if rule.id.upper() in disabled:
                logger.debug(f"Rule {rule.id} ({rule.name}) disabled by configuration")
                continue
            self.add_rule(rule)

    def validate(self, package: PackageRoot) -> ValidationResult:
        """Run every rule on a discovered package root.

        All rules run regardless of earlier findings. A rule that raises is
        reported as an error diagnostic of that rule.

        Args:
            package: Discovered package root

        Returns:
            ValidationResult with diagnostics ordered by artifact path, then rule id
        """
        result = ValidationResult(root=str(package.path))
        facts = self.extractor.extract(package)
        context = RuleContext(package=package, facts=facts, settings=self.config.rules)

        logger.info(f"Validating {package.path} with {len(self.rules)} rules")

        for rule in self.rules:
            logger.debug(f"Executing rule: {rule.id} ({rule.name})")
            try:
                findings = list(rule.check(context))
            except Exception as e:
                logger.error(f"Rule {rule.id} failed with error: {e}")
                result.diagnostics.append(Diagnostic(
                    severity=Severity.ERROR,
                    rule_id=rule.id,
                    kind=rule.kind,
                    message=f"Rule execution failed: {e}",
                    artifact_path=".",
                ))
                continue
            for finding in findings:
                result.diagnostics.append(rule.to_diagnostic(finding))

        if self.config.rules.strict:
            result.promote_warnings()
        result.sort()

        for artifact in package.artifacts:
            result.increment_counter(f"artifacts_{artifact.kind.value.replace('-', '_')}")
        result.increment_counter("node_units", len(package.units))
        result.increment_counter("identities", len(facts.identities))

        logger.info(
            f"Validation of {package.path} completed: {len(result.errors)} errors, "
            f"{len(result.warnings)} warnings"
        )
        return result
