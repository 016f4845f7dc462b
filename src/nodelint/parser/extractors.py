"""Cross-reference extraction of declared identities and structural facts.

Each artifact kind has its own strategy. JSON artifacts are read through known
key paths; scripts and markup are searched lexically on their masked views.
"""

import logging
import re
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable

from nodelint.models.artifact import (
    Artifact,
    ArtifactKind,
    DeclaredIdentity,
    IdentityRole,
    PackageRoot,
    StructuralFact,
)
from nodelint.parser.lexer import ScannedText, javascript_spans, matching_brace
from nodelint.parser.loader import node_registrations

logger = logging.getLogger(__name__)

# Fact names
USES_IMPORT_STATEMENT = "usesImportStatement"
REFERENCES_DEVICE_MODULE = "referencesDeviceModule"
USES_DEFAULT_EXPORT = "usesDefaultExport"
HAS_STATIC_REGISTRATION = "hasStaticRegistration"
REGISTRATION_CALL = "registrationCall"
STATIC_TYPE_FIELD = "staticTypeField"
DECLARES_MANIFEST_INCLUDE = "declaresManifestInclude"
MANIFEST_MODULES_SHAPE = "manifestModulesShape"
MANIFEST_PATH_HAS_JS_EXTENSION = "manifestPathHasJsExtension"
MANIFEST_PRELOAD_SHAPE = "manifestPreloadShape"
DESCRIPTOR_NODE_MAP_SHAPE = "descriptorNodeMapShape"

# Declaration forms: a string literal, a non-literal expression, or nothing
LITERAL = "literal"
DYNAMIC = "dynamic"
MISSING = "missing"

_REGISTER_CALL = re.compile(r"\bregisterType\s*\(\s*")
_STATIC_TYPE = re.compile(r"\bstatic\s+type\s*=\s*")
_STATIC_BLOCK = re.compile(r"\bstatic\s*\{")
_DEFAULT_EXPORT = re.compile(r"\bexport\s+default\b")
_IMPORT_STATEMENT = re.compile(r"(?:^|[;{}])[ \t]*import\b(?=\s*[\w$*{\"'])", re.MULTILINE)
_MODULE_CALL = re.compile(r"\b(?:require|import)\s*\(\s*(?=[\"'`])")
_MODULE_FROM = re.compile(r"(?:\bfrom|(?:^|[;{}])[ \t]*import)\s*(?=[\"'])", re.MULTILINE)
_TEMPLATE_NAME = re.compile(r"""\bdata-template-name\s*=\s*(["'])(.*?)\1""", re.DOTALL)
_HELP_NAME = re.compile(r"""\bdata-help-name\s*=\s*(["'])(.*?)\1""", re.DOTALL)
_QUOTES = "\"'`"


@dataclass
class FactSet:
    """Identities and structural facts extracted from one package root."""
    identities: list[DeclaredIdentity] = field(default_factory=list)
    facts: list[StructuralFact] = field(default_factory=list)

    def identities_for(self, artifact_path: str) -> list[DeclaredIdentity]:
        return [i for i in self.identities if i.artifact_path == artifact_path]

    def facts_for(self, artifact_path: str, name: str) -> list[StructuralFact]:
        return [f for f in self.facts if f.artifact_path == artifact_path and f.name == name]

    def fact(self, artifact_path: str, name: str) -> StructuralFact | None:
        found = self.facts_for(artifact_path, name)
        return found[0] if found else None

    def value(self, artifact_path: str, name: str, default: Any = None) -> Any:
        found = self.fact(artifact_path, name)
        return found.value if found is not None else default

    def counts(self) -> dict[str, int]:
        by_role: dict[str, int] = defaultdict(int)
        for identity in self.identities:
            by_role[identity.role.value] += 1
        return dict(by_role)


class CrossReferenceExtractor:
    """Derives identities and structural facts for every artifact of a root."""

    def __init__(self, device_module: str = "nodered", manifest_include_marker: str = "moddable_manifest",
                 script_suffixes: Iterable[str] = (".js", ".mjs", ".cjs")):
        self.device_module = device_module
        self.manifest_include_marker = re.compile(rf"\b{re.escape(manifest_include_marker)}\b")
        self.script_suffixes = tuple(s.lower() for s in script_suffixes)

    def extract(self, package: PackageRoot) -> FactSet:
        facts = FactSet()
        for artifact in package.artifacts:
            if not artifact.is_parsed:
                continue
            handler = {
                ArtifactKind.HOST_STUB_SCRIPT: self._extract_stub,
                ArtifactKind.DEVICE_SCRIPT: self._extract_device,
                ArtifactKind.EDITOR_MARKUP: self._extract_markup,
                ArtifactKind.DEVICE_MANIFEST: self._extract_manifest,
                ArtifactKind.PACKAGE_DESCRIPTOR: self._extract_descriptor,
            }.get(artifact.kind)
            if handler is not None:
                handler(artifact, facts)

        logger.debug(
            f"Extracted {len(facts.identities)} identities and {len(facts.facts)} facts "
            f"from {len(package.artifacts)} artifacts"
        )
        return facts

    def _extract_stub(self, artifact: Artifact, facts: FactSet) -> None:
        scanned: ScannedText = artifact.parsed
        self._registration_calls(artifact, scanned, facts)

        imports = scanned.find(_IMPORT_STATEMENT)
        facts.facts.append(StructuralFact(
            artifact.path, USES_IMPORT_STATEMENT, bool(imports),
            scanned.location(imports[0].start()) if imports else None,
        ))

        offsets = [m.end() for m in scanned.find(_MODULE_CALL)] + \
            [m.end() for m in scanned.find(_MODULE_FROM)]
        hits = sorted(o for o in offsets if (scanned.literal_at(o) or "").strip() == self.device_module)
        facts.facts.append(StructuralFact(
            artifact.path, REFERENCES_DEVICE_MODULE, bool(hits),
            scanned.location(hits[0]) if hits else None,
        ))

    def _extract_device(self, artifact: Artifact, facts: FactSet) -> None:
        scanned: ScannedText = artifact.parsed

        form = MISSING
        for match in scanned.find(_STATIC_TYPE):
            value = self._literal_after(scanned, match.end())
            if value is None:
                form = form if form == LITERAL else DYNAMIC
                continue
            form = LITERAL
            facts.identities.append(DeclaredIdentity(
                artifact.path, IdentityRole.STATIC_FIELD, value, scanned.location(match.start())
            ))
        facts.facts.append(StructuralFact(artifact.path, STATIC_TYPE_FIELD, form))

        self._registration_calls(artifact, scanned, facts)

        exports = scanned.find(_DEFAULT_EXPORT)
        facts.facts.append(StructuralFact(
            artifact.path, USES_DEFAULT_EXPORT, bool(exports),
            scanned.location(exports[0].start()) if exports else None,
        ))

        registered_at = None
        for match in scanned.find(_STATIC_BLOCK):
            open_brace = match.end() - 1
            close_brace = matching_brace(scanned.skeleton, open_brace)
            if close_brace == -1:
                continue
            if scanned.find(_REGISTER_CALL, open_brace, close_brace):
                registered_at = scanned.location(match.start())
                break
        facts.facts.append(StructuralFact(
            artifact.path, HAS_STATIC_REGISTRATION, registered_at is not None, registered_at
        ))

    def _extract_markup(self, artifact: Artifact, facts: FactSet) -> None:
        scanned: ScannedText = artifact.parsed
        spans = javascript_spans(scanned)

        self._registration_calls(artifact, scanned, facts, spans=spans)

        for pattern, role in ((_TEMPLATE_NAME, IdentityRole.TEMPLATE_NAME),
                              (_HELP_NAME, IdentityRole.HELP_NAME)):
            for match in scanned.find(pattern):
                if _inside(match.start(), spans):
                    continue
                facts.identities.append(DeclaredIdentity(
                    artifact.path, role, match.group(2).strip(), scanned.location(match.start())
                ))

        include = None
        for start, end in spans:
            match = self.manifest_include_marker.search(scanned.code, start, end)
            if match is not None:
                include = scanned.location(match.start())
                break
        facts.facts.append(StructuralFact(
            artifact.path, DECLARES_MANIFEST_INCLUDE, include is not None, include
        ))

    def _extract_manifest(self, artifact: Artifact, facts: FactSet) -> None:
        data = artifact.parsed
        if not isinstance(data, dict):
            facts.facts.append(StructuralFact(artifact.path, MANIFEST_MODULES_SHAPE, "invalid"))
            return

        modules = data.get("modules", None)
        facts.facts.append(StructuralFact(
            artifact.path, MANIFEST_MODULES_SHAPE, _json_shape("modules" in data, modules), "modules"
        ))
        if isinstance(modules, dict):
            for name in sorted(modules):
                values = modules[name] if isinstance(modules[name], list) else [modules[name]]
                for value in values:
                    if isinstance(value, str) and value.strip().lower().endswith(self.script_suffixes):
                        facts.facts.append(StructuralFact(
                            artifact.path, MANIFEST_PATH_HAS_JS_EXTENSION, value, f"modules.{name}"
                        ))

        preload = data.get("preload", None)
        facts.facts.append(StructuralFact(
            artifact.path, MANIFEST_PRELOAD_SHAPE, _json_shape("preload" in data, preload), "preload"
        ))

    def _extract_descriptor(self, artifact: Artifact, facts: FactSet) -> None:
        data = artifact.parsed
        nodes = node_registrations(data)
        if nodes is None:
            section = data.get("node-red") if isinstance(data, dict) else None
            has_map = isinstance(section, dict) and "nodes" in section
            shape = "invalid" if has_map else MISSING
            facts.facts.append(StructuralFact(artifact.path, DESCRIPTOR_NODE_MAP_SHAPE, shape, "node-red.nodes"))
            return

        facts.facts.append(StructuralFact(artifact.path, DESCRIPTOR_NODE_MAP_SHAPE, "object", "node-red.nodes"))
        for key in nodes:
            facts.identities.append(DeclaredIdentity(
                artifact.path, IdentityRole.DESCRIPTOR_KEY, key.strip(), f"node-red.nodes.{key}"
            ))

    def _registration_calls(self, artifact: Artifact, scanned: ScannedText, facts: FactSet,
                            spans: list[tuple[int, int]] | None = None) -> None:
        """Record literal first arguments of registerType calls."""
        form = MISSING
        for match in scanned.find(_REGISTER_CALL):
            if spans is not None and not _inside(match.start(), spans):
                continue
            value = self._literal_after(scanned, match.end())
            if value is None:
                form = form if form == LITERAL else DYNAMIC
                continue
            form = LITERAL
            facts.identities.append(DeclaredIdentity(
                artifact.path, IdentityRole.REGISTRATION_CALL, value, scanned.location(match.start())
            ))
        facts.facts.append(StructuralFact(artifact.path, REGISTRATION_CALL, form))

    @staticmethod
    def _literal_after(scanned: ScannedText, offset: int) -> str | None:
        if offset >= len(scanned.skeleton) or scanned.skeleton[offset] not in _QUOTES:
            return None
        value = scanned.literal_at(offset)
        return value.strip() if value is not None else None


def _inside(offset: int, spans: list[tuple[int, int]]) -> bool:
    return any(start <= offset < end for start, end in spans)


def _json_shape(present: bool, value: Any) -> str:
    if not present:
        return MISSING
    if isinstance(value, dict):
        return "object"
    if isinstance(value, list):
        return "array"
    if isinstance(value, str):
        return "string"
    return "invalid"
