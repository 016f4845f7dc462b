"""Artifact loading: read each recognized file into its structural form."""

import json
import logging
from pathlib import Path
from typing import Any

from nodelint.errors import InvocationError
from nodelint.models.artifact import Artifact, ArtifactKind, JsonErrorInfo
from nodelint.parser.lexer import scan_markup, scan_script

logger = logging.getLogger(__name__)


class ArtifactLoader:
    """Loads files of one package root into Artifact instances."""

    def __init__(self, root: Path):
        self.root = root

    def load(self, relative_path: str, kind: ArtifactKind) -> Artifact:
        """Read and parse one artifact.

        JSON syntax errors are captured on the artifact, never raised.

        Raises:
            InvocationError: If the file cannot be read at all
        """
        file_path = self.root / relative_path
        try:
            raw_text = file_path.read_text(encoding="utf-8-sig", errors="replace")
        except OSError as e:
            raise InvocationError(str(self.root), f"cannot read {relative_path}: {e}") from e

        logger.debug(f"Loaded {kind.value} artifact {relative_path} ({len(raw_text)} chars)")

        if kind == ArtifactKind.HOST_STUB_SCRIPT or kind == ArtifactKind.DEVICE_SCRIPT:
            return Artifact(kind, relative_path, raw_text, parsed=scan_script(raw_text))
        if kind == ArtifactKind.EDITOR_MARKUP:
            return Artifact(kind, relative_path, raw_text, parsed=scan_markup(raw_text))
        if kind.is_json and relative_path.lower().endswith(".json"):
            parsed, error = parse_json(raw_text)
            if error is not None:
                logger.info(f"Malformed JSON in {relative_path}: {error.message}")
            return Artifact(kind, relative_path, raw_text, parsed=parsed, parse_error=error)

        # Locale help pages are checked for presence only
        return Artifact(kind, relative_path, raw_text)


def parse_json(text: str) -> tuple[Any, JsonErrorInfo | None]:
    """Parse JSON text, returning (value, None) or (None, error info)."""
    try:
        return json.loads(text), None
    except json.JSONDecodeError as e:
        return None, JsonErrorInfo(message=e.msg, line=e.lineno, column=e.colno)


def node_registrations(descriptor: Any) -> dict[str, Any] | None:
    """Return the descriptor's ``node-red.nodes`` map, or None if absent or not an object."""
    if not isinstance(descriptor, dict):
        return None
    section = descriptor.get("node-red")
    if not isinstance(section, dict):
        return None
    nodes = section.get("nodes")
    if not isinstance(nodes, dict):
        return None
    return nodes
