"""Validator facade: run the discovery/extraction/checking pipeline over package roots."""

import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Iterable

from nodelint.config import NodelintConfig
from nodelint.errors import InvocationError
from nodelint.models.diagnostic import Diagnostic, DiagnosticKind, Severity, ValidationResult
from nodelint.parser.discovery import PackageDiscovery
from nodelint.validation.framework import ValidationFramework

logger = logging.getLogger(__name__)


def validate_root(root: str | Path, config: NodelintConfig | None = None) -> ValidationResult:
    """Validate a single package root.

    Invocation errors (missing or unreadable root) are captured on the result
    instead of being raised.
    """
    config = config or NodelintConfig()
    root_label = str(root)

    try:
        discovery = PackageDiscovery(
            Path(root),
            exclude_patterns=config.scan.exclude,
            max_workers=config.concurrency.max_workers,
        )
        package = discovery.discover()
    except InvocationError as e:
        logger.error(f"Cannot validate {root_label}: {e.reason}")
        return ValidationResult(
            root=root_label,
            diagnostics=[Diagnostic(
                severity=Severity.ERROR,
                rule_id="INV",
                kind=DiagnosticKind.INVOCATION_ERROR,
                message=e.reason,
                artifact_path=".",
            )],
            invocation_error=e.reason,
        )

    framework = ValidationFramework(config)
    framework.create_default_rules()
    result = framework.validate(package)
    result.root = root_label
    return result


def validate(root_paths: Iterable[str | Path], config: NodelintConfig | None = None,
             max_workers: int | None = None) -> list[ValidationResult]:
    """Validate several package roots independently.

    Roots share no mutable state and may run concurrently; every root is
    evaluated even when earlier ones fail. Results come back in input order.

    Args:
        root_paths: Package root directories
        config: Configuration shared (read-only) by all roots
        max_workers: Thread pool size (default: config concurrency setting)

    Returns:
        One ValidationResult per root, in input order
    """
    config = config or NodelintConfig()
    roots = list(root_paths)
    if not roots:
        return []

    workers = max_workers or config.concurrency.max_workers
    workers = max(1, min(workers, len(roots)))
    logger.info(f"Validating {len(roots)} package root(s) with {workers} worker(s)")

    if workers == 1:
        return [validate_root(root, config) for root in roots]

    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda root: validate_root(root, config), roots))
