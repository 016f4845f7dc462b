"""Data models for package artifacts, extracted facts and diagnostics."""

from nodelint.models.artifact import (
    Artifact,
    ArtifactKind,
    DeclaredIdentity,
    IdentityRole,
    JsonErrorInfo,
    NodeUnit,
    PackageRoot,
    StructuralFact,
)
from nodelint.models.diagnostic import (
    Diagnostic,
    DiagnosticKind,
    Severity,
    ValidationResult,
    aggregate_exit_code,
)

__all__ = [
    "Artifact",
    "ArtifactKind",
    "DeclaredIdentity",
    "IdentityRole",
    "JsonErrorInfo",
    "NodeUnit",
    "PackageRoot",
    "StructuralFact",
    "Diagnostic",
    "DiagnosticKind",
    "Severity",
    "ValidationResult",
    "aggregate_exit_code",
]
