"""Path normalization utilities for cross-platform compatibility."""

import posixpath
from pathlib import Path

DEVICE_SCRIPT_SUFFIX = ".mcu.js"
MARKUP_SUFFIXES = (".html", ".htm")


def normalize_path(path: str) -> str:
    """Convert any path to canonical forward slash format.

    Args:
        path: Path with any separator format

    Returns:
        Path with forward slashes only

    Examples:
        >>> normalize_path("node\\\\foo\\\\foo.js")
        'node/foo/foo.js'
        >>> normalize_path("node/foo/foo.js")
        'node/foo/foo.js'
    """
    if not path:
        return path

    return path.replace("\\", "/")


def relative_posix(path: Path, root: Path) -> str:
    """Return path relative to root in POSIX form."""
    return normalize_path(str(path.relative_to(root)))


def normalize_reference(reference: str) -> str:
    """Normalize a package-relative reference from a JSON descriptor.

    Leading "./" segments and redundant separators are removed so the result
    compares equal to artifact paths.

    Examples:
        >>> normalize_reference("./node/foo/foo.js")
        'node/foo/foo.js'
        >>> normalize_reference("node//foo/../foo/foo.js")
        'node/foo/foo.js'
    """
    normalized = posixpath.normpath(normalize_path(reference.strip()))
    if normalized == ".":
        return ""
    return normalized


def split_stem(file_name: str) -> str:
    """Strip the artifact suffix from a node file name.

    Examples:
        >>> split_stem("foo.mcu.js")
        'foo'
        >>> split_stem("foo.js")
        'foo'
        >>> split_stem("foo.html")
        'foo'
    """
    lowered = file_name.lower()
    for suffix in (DEVICE_SCRIPT_SUFFIX, ".js", *MARKUP_SUFFIXES, ".json"):
        if lowered.endswith(suffix):
            return file_name[: -len(suffix)]
    return file_name


def stub_path_for(device_path: str) -> str:
    """Return the host stub path that sits next to a device script.

    Examples:
        >>> stub_path_for("node/foo/foo.mcu.js")
        'node/foo/foo.js'
    """
    if device_path.lower().endswith(DEVICE_SCRIPT_SUFFIX):
        return device_path[: -len(DEVICE_SCRIPT_SUFFIX)] + ".js"
    return device_path
