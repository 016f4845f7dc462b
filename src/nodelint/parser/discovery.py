"""Package discovery: find, classify and load the artifacts of a package root."""

import fnmatch
import logging
import os
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from nodelint.errors import InvocationError
from nodelint.models.artifact import Artifact, ArtifactKind, NodeUnit, PackageRoot
from nodelint.parser.loader import ArtifactLoader, node_registrations
from nodelint.utils.paths import (
    DEVICE_SCRIPT_SUFFIX,
    MARKUP_SUFFIXES,
    normalize_reference,
    relative_posix,
    split_stem,
    stub_path_for,
)

logger = logging.getLogger(__name__)

DESCRIPTOR_NAME = "package.json"
MANIFEST_NAME = "manifest.json"
LOCALES_DIR = "locales"
ALWAYS_SKIPPED_DIRS = {"node_modules"}


class PackageDiscovery:
    """Artifact discovery and loading for one package root."""

    def __init__(self, root: Path, exclude_patterns: list[str] | None = None,
                 max_workers: int = 4):
        """Initialize package discovery.

        Args:
            root: Package root directory
            exclude_patterns: Glob patterns (relative, POSIX) to exclude from discovery
            max_workers: Thread pool size for concurrent artifact loads
        """
        self.root = Path(root)
        self.exclude_patterns = exclude_patterns or []
        self.max_workers = max_workers

    def discover(self) -> PackageRoot:
        """Scan the root, load every recognized artifact and group node units.

        Raises:
            InvocationError: If the root is missing, not a directory or unreadable
        """
        root = self._check_root()
        loader = ArtifactLoader(root)
        files = self._find_files(root)

        descriptor = None
        referenced: set[str] = set()
        if DESCRIPTOR_NAME in files:
            descriptor = loader.load(DESCRIPTOR_NAME, ArtifactKind.PACKAGE_DESCRIPTOR)
            nodes = node_registrations(descriptor.parsed) or {}
            referenced = {
                normalize_reference(value) for value in nodes.values() if isinstance(value, str)
            }

        siblings = _siblings_by_directory(files)
        classified = []
        for relative_path in files:
            if relative_path == DESCRIPTOR_NAME:
                continue
            kind = classify(relative_path, siblings, referenced)
            if kind is not None:
                classified.append((relative_path, kind))

        # Loads are independent; grouping waits for all of them
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            artifacts = list(executor.map(lambda item: loader.load(*item), classified))

        if descriptor is not None:
            artifacts.append(descriptor)
        artifacts.sort(key=lambda a: a.path)

        package = PackageRoot(path=root, artifacts=artifacts, units=group_units(artifacts))
        logger.info(
            f"Discovered {len(artifacts)} artifacts and {len(package.units)} node units in {root}"
        )
        return package

    def _check_root(self) -> Path:
        root = self.root
        if not root.exists():
            raise InvocationError(str(root), "path does not exist")
        if not root.is_dir():
            raise InvocationError(str(root), "path is not a directory")
        try:
            root = root.resolve()
            with os.scandir(root) as entries:
                next(entries, None)
        except OSError as e:
            raise InvocationError(str(root), f"directory is not readable: {e}") from e
        return root

    def _find_files(self, root: Path) -> list[str]:
        """All non-excluded files below root, as sorted POSIX relative paths."""
        found = []

        def _raise(error: OSError) -> None:
            raise InvocationError(str(root), f"cannot list {error.filename}: {error.strerror}")

        for current, dirs, files in os.walk(root, onerror=_raise):
            current_path = Path(current)
            dirs[:] = sorted(
                d for d in dirs
                if not d.startswith(".")
                and d not in ALWAYS_SKIPPED_DIRS
                and not self._is_dir_excluded(relative_posix(current_path / d, root))
            )
            for name in files:
                relative = relative_posix(current_path / name, root)
                if not self._is_excluded(relative):
                    found.append(relative)
        return sorted(found)

    def _is_excluded(self, relative_path: str) -> bool:
        """Check if file should be excluded based on patterns."""
        return any(fnmatch.fnmatch(relative_path, pattern) for pattern in self.exclude_patterns)

    def _is_dir_excluded(self, relative_dir: str) -> bool:
        """Check if directory should be excluded from traversal."""
        probe = relative_dir + "/**"
        return any(fnmatch.fnmatch(probe, pattern) for pattern in self.exclude_patterns)


def _siblings_by_directory(files: list[str]) -> dict[str, set[str]]:
    siblings: dict[str, set[str]] = defaultdict(set)
    for relative_path in files:
        directory, _, name = relative_path.rpartition("/")
        siblings[directory].add(name.lower())
    return siblings


def classify(relative_path: str, siblings: dict[str, set[str]],
             referenced: set[str]) -> ArtifactKind | None:
    """Infer an artifact kind from file name and location only.

    Args:
        relative_path: POSIX path relative to the package root
        siblings: Lower-cased file names per directory
        referenced: Paths named by the descriptor's node map (normalized)

    Returns:
        ArtifactKind, or None for files that are not package artifacts
    """
    directory, _, name = relative_path.rpartition("/")
    lowered = name.lower()

    if relative_path == DESCRIPTOR_NAME:
        return ArtifactKind.PACKAGE_DESCRIPTOR
    if LOCALES_DIR in directory.split("/") and lowered.endswith((".json", *MARKUP_SUFFIXES)):
        return ArtifactKind.LOCALE_BUNDLE
    if lowered.endswith(DEVICE_SCRIPT_SUFFIX):
        return ArtifactKind.DEVICE_SCRIPT
    if lowered == MANIFEST_NAME:
        return ArtifactKind.DEVICE_MANIFEST
    stem = split_stem(lowered)
    names = siblings.get(directory, set())
    if lowered.endswith(MARKUP_SUFFIXES):
        # Markup belongs to a node only next to its scripts or when the descriptor names its stub
        stub_path = f"{relative_path[: -len(name)]}{split_stem(name)}.js"
        paired = any(f"{stem}{suffix}" in names for suffix in (".js", DEVICE_SCRIPT_SUFFIX))
        if paired or stub_path in {stub_path_for(r) for r in referenced}:
            return ArtifactKind.EDITOR_MARKUP
        return None
    if lowered.endswith(".js"):
        paired = any(f"{stem}{suffix}" in names for suffix in (*MARKUP_SUFFIXES, DEVICE_SCRIPT_SUFFIX))
        if paired or relative_path in referenced:
            return ArtifactKind.HOST_STUB_SCRIPT
    return None


def group_units(artifacts: list[Artifact]) -> list[NodeUnit]:
    """Group node artifacts by directory and stem.

    The device manifest of a directory joins the units of that directory that
    have a device script, or the single unit of the directory. Locale bundles
    under ``<dir>/locales/<lang>/<stem>.*`` join unit ``<dir>/<stem>``.
    """
    units: dict[tuple[str, str], NodeUnit] = {}

    def unit_for(directory: str, stem: str) -> NodeUnit:
        key = (directory, stem)
        if key not in units:
            units[key] = NodeUnit(directory=directory, stem=stem)
        return units[key]

    for artifact in artifacts:
        directory, _, name = artifact.path.rpartition("/")
        stem = split_stem(name)
        if artifact.kind == ArtifactKind.HOST_STUB_SCRIPT:
            unit_for(directory, stem).stub = artifact
        elif artifact.kind == ArtifactKind.DEVICE_SCRIPT:
            unit_for(directory, stem).device = artifact
        elif artifact.kind == ArtifactKind.EDITOR_MARKUP:
            unit_for(directory, stem).markup = artifact

    by_directory: dict[str, list[NodeUnit]] = defaultdict(list)
    for unit in units.values():
        by_directory[unit.directory].append(unit)

    descriptor = None
    for artifact in artifacts:
        directory, _, name = artifact.path.rpartition("/")
        if artifact.kind == ArtifactKind.DEVICE_MANIFEST:
            siblings = by_directory.get(directory, [])
            for unit in siblings:
                if unit.device is not None or len(siblings) == 1:
                    unit.manifest = artifact
        elif artifact.kind == ArtifactKind.LOCALE_BUNDLE:
            parts = directory.split("/")
            if LOCALES_DIR not in parts:
                continue
            index = len(parts) - 1 - parts[::-1].index(LOCALES_DIR)
            owner_dir = "/".join(parts[:index])
            key = (owner_dir, split_stem(name))
            if key in units:
                units[key].locales.append(artifact)
        elif artifact.kind == ArtifactKind.PACKAGE_DESCRIPTOR:
            descriptor = artifact

    if descriptor is not None:
        for key, value in (node_registrations(descriptor.parsed) or {}).items():
            if not isinstance(value, str):
                continue
            target = stub_path_for(normalize_reference(value))
            directory, _, name = target.rpartition("/")
            unit = units.get((directory, split_stem(name)))
            if unit is not None:
                unit.descriptor_keys.append(key)

    return sorted(units.values(), key=lambda u: (u.directory, u.stem))
