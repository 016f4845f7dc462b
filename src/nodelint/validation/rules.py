"""Rule catalog for node package consistency.

Each rule is a catalog entry plus a check function over the extracted facts
of one package root. Checks never raise for bad input; they yield findings.
"""

import logging
from collections import Counter
from typing import Iterator

from ..models.artifact import Artifact, ArtifactKind, DeclaredIdentity, IdentityRole, NodeUnit
from ..models.diagnostic import DiagnosticKind, Severity
from ..parser.discovery import DESCRIPTOR_NAME, MANIFEST_NAME
from ..parser.extractors import (
    DECLARES_MANIFEST_INCLUDE,
    DESCRIPTOR_NODE_MAP_SHAPE,
    DYNAMIC,
    HAS_STATIC_REGISTRATION,
    LITERAL,
    MANIFEST_MODULES_SHAPE,
    MANIFEST_PATH_HAS_JS_EXTENSION,
    MANIFEST_PRELOAD_SHAPE,
    MISSING,
    REFERENCES_DEVICE_MODULE,
    REGISTRATION_CALL,
    STATIC_TYPE_FIELD,
    USES_DEFAULT_EXPORT,
    USES_IMPORT_STATEMENT,
)
from ..parser.loader import node_registrations
from ..utils.paths import DEVICE_SCRIPT_SUFFIX, normalize_reference, stub_path_for
from .framework import Finding, RuleContext, RuleSpec

logger = logging.getLogger(__name__)


def _parsed(artifact: Artifact | None) -> bool:
    return artifact is not None and artifact.is_parsed


def _expected_path(unit: NodeUnit, file_name: str) -> str:
    return f"{unit.directory}/{file_name}" if unit.directory else file_name


def check_malformed_json(ctx: RuleContext) -> Iterator[Finding]:
    """J1: JSON artifacts must parse.

    Locale bundles are only checked for presence, so a broken one is a warning.
    """
    for artifact in ctx.package.artifacts:
        if artifact.parse_error is None:
            continue
        yield Finding(
            artifact.path,
            f"Invalid JSON: {artifact.parse_error.message}",
            location=artifact.parse_error.location,
            severity=Severity.WARNING if artifact.kind == ArtifactKind.LOCALE_BUNDLE else None,
        )


def check_mandatory_artifacts(ctx: RuleContext) -> Iterator[Finding]:
    """P1: descriptor and host stub always; device script and manifest for MCU nodes."""
    package = ctx.package
    if package.descriptor is None:
        yield Finding(DESCRIPTOR_NAME, "Package descriptor package.json is missing")

    stubs = package.by_kind(ArtifactKind.HOST_STUB_SCRIPT)
    for unit in package.units:
        if unit.stub is None and unit.device is not None:
            expected = stub_path_for(unit.device.path)
            yield Finding(
                expected,
                f"Host stub script is missing for device script {unit.device.path}",
            )
        if unit.stub is None or not unit.is_mcu:
            continue
        if unit.device is None:
            yield Finding(
                _expected_path(unit, f"{unit.stem}{DEVICE_SCRIPT_SUFFIX}"),
                f"Device script is missing for node {unit.key} which has a device manifest",
            )
        if unit.manifest is None:
            yield Finding(
                _expected_path(unit, MANIFEST_NAME),
                f"Device manifest is missing for node {unit.key} which has a device script",
            )

    if not stubs and not any(u.device is not None for u in package.units):
        yield Finding(".", "Package contains no host stub script")


def check_locale_bundles(ctx: RuleContext) -> Iterator[Finding]:
    """P2: each node should ship at least one locale bundle."""
    if not ctx.settings.require_locale:
        return
    for unit in ctx.package.units:
        if unit.stub is None or unit.locales:
            continue
        yield Finding(
            unit.stub.path,
            f"No locale bundle found for node {unit.key}; expected "
            f"{_expected_path(unit, f'locales/<lang>/{unit.stem}.json')}",
        )


def check_module_format(ctx: RuleContext) -> Iterator[Finding]:
    """R1: device manifest ``modules`` must be an object."""
    for manifest in ctx.package.by_kind(ArtifactKind.DEVICE_MANIFEST):
        if not manifest.is_parsed:
            continue
        shape = ctx.facts.value(manifest.path, MANIFEST_MODULES_SHAPE, MISSING)
        if shape == "invalid" and not isinstance(manifest.parsed, dict):
            yield Finding(manifest.path, "Device manifest must be a JSON object")
        elif shape not in (MISSING, "object"):
            yield Finding(
                manifest.path,
                f"Device manifest 'modules' must be a JSON object, found {shape}",
                location="modules",
            )


def check_no_extension(ctx: RuleContext) -> Iterator[Finding]:
    """R2: module paths in the device manifest carry no script suffix."""
    for fact in ctx.facts.facts:
        if fact.name != MANIFEST_PATH_HAS_JS_EXTENSION:
            continue
        yield Finding(
            fact.artifact_path,
            f"Module path \"{fact.value}\" must not include a script file extension",
            location=fact.location,
        )


def check_preload_is_string(ctx: RuleContext) -> Iterator[Finding]:
    """R3: device manifest ``preload`` must be a string."""
    for manifest in ctx.package.by_kind(ArtifactKind.DEVICE_MANIFEST):
        shape = ctx.facts.value(manifest.path, MANIFEST_PRELOAD_SHAPE, MISSING)
        if shape not in (MISSING, "string"):
            yield Finding(
                manifest.path,
                f"Device manifest 'preload' must be a string, found {shape}",
                location="preload",
            )


def check_descriptor_points_to_stub(ctx: RuleContext) -> Iterator[Finding]:
    """R4: descriptor node registrations reference host stubs only."""
    package = ctx.package
    descriptor = package.descriptor
    if not _parsed(descriptor):
        return

    shape = ctx.facts.value(descriptor.path, DESCRIPTOR_NODE_MAP_SHAPE, MISSING)
    if shape == MISSING:
        yield Finding(descriptor.path, "Descriptor declares no node-red.nodes registration map",
                      location="node-red.nodes")
        return
    if shape != "object":
        yield Finding(descriptor.path, "Descriptor node-red.nodes must be a JSON object",
                      location="node-red.nodes")
        return

    registered: set[str] = set()
    for key, value in node_registrations(descriptor.parsed).items():
        location = f"node-red.nodes.{key}"
        if not isinstance(value, str):
            yield Finding(descriptor.path, f"Node \"{key}\" registration must be a relative path string",
                          location=location)
            continue

        reference = normalize_reference(value)
        target = package.get(reference)
        if reference.lower().endswith(DEVICE_SCRIPT_SUFFIX):
            stub_path = stub_path_for(reference)
            registered.add(stub_path)
            yield Finding(
                descriptor.path,
                f"Node \"{key}\" references device script \"{reference}\"; the descriptor must "
                f"reference the stub path \"{stub_path}\" instead",
                location=location,
            )
        elif target is None:
            yield Finding(descriptor.path, f"Node \"{key}\" references missing file \"{reference}\"",
                          location=location)
        elif target.kind != ArtifactKind.HOST_STUB_SCRIPT:
            yield Finding(
                descriptor.path,
                f"Node \"{key}\" references \"{reference}\" which is a {target.kind.value}, not a host stub",
                location=location,
            )
        else:
            registered.add(reference)

    for stub in package.by_kind(ArtifactKind.HOST_STUB_SCRIPT):
        if stub.path not in registered:
            yield Finding(
                stub.path,
                "Host stub is not registered in package.json node-red.nodes",
                severity=Severity.WARNING,
            )


def check_stub_is_commonjs(ctx: RuleContext) -> Iterator[Finding]:
    """R5: host stub uses CommonJS and never the device-only module."""
    for stub in ctx.package.by_kind(ArtifactKind.HOST_STUB_SCRIPT):
        imports = ctx.facts.fact(stub.path, USES_IMPORT_STATEMENT)
        if imports is not None and imports.value:
            yield Finding(stub.path, "Host stub must be CommonJS but contains an import statement",
                          location=imports.location)
        device = ctx.facts.fact(stub.path, REFERENCES_DEVICE_MODULE)
        if device is not None and device.value:
            yield Finding(
                stub.path,
                f"Host stub references device-only module \"{ctx.settings.device_module}\"",
                location=device.location,
            )


def check_device_no_default_export(ctx: RuleContext) -> Iterator[Finding]:
    """R6: device script has no default export."""
    for device in ctx.package.by_kind(ArtifactKind.DEVICE_SCRIPT):
        fact = ctx.facts.fact(device.path, USES_DEFAULT_EXPORT)
        if fact is not None and fact.value:
            yield Finding(device.path, "Device script must not use a default export",
                          location=fact.location)


def check_device_static_registration(ctx: RuleContext) -> Iterator[Finding]:
    """R7: device script registers itself from a static initialization block."""
    for device in ctx.package.by_kind(ArtifactKind.DEVICE_SCRIPT):
        if not ctx.facts.value(device.path, HAS_STATIC_REGISTRATION, False):
            yield Finding(device.path,
                          "Device script has no static initialization block calling registerType()")


_REQUIRED_IDENTITY = {
    ArtifactKind.HOST_STUB_SCRIPT: (REGISTRATION_CALL, "registerType() call"),
    ArtifactKind.DEVICE_SCRIPT: (STATIC_TYPE_FIELD, "static type field"),
    ArtifactKind.EDITOR_MARKUP: (REGISTRATION_CALL, "registerType() call"),
}


def _missing_identity(ctx: RuleContext, artifact: Artifact) -> Finding | None:
    fact_name, label = _REQUIRED_IDENTITY[artifact.kind]
    form = ctx.facts.value(artifact.path, fact_name, MISSING)
    if form == LITERAL:
        return None
    if form == DYNAMIC:
        message = f"Type name in {label} is not a string literal"
    else:
        message = f"No type name declared: {label} not found"
    return Finding(artifact.path, message, kind=DiagnosticKind.MISSING_IDENTITY)


def _describe(identities: list[DeclaredIdentity]) -> str:
    return ", ".join(
        f"\"{i.value}\" ({i.role.value}{', ' + i.location if i.location else ''})" for i in identities
    )


def check_identity_consistency(ctx: RuleContext) -> Iterator[Finding]:
    """R8: the type name is identical everywhere it is declared for a node."""
    descriptor = ctx.package.descriptor
    descriptor_ids = ctx.facts.identities_for(descriptor.path) if _parsed(descriptor) else []

    for unit in ctx.package.units:
        representatives: list[DeclaredIdentity] = []
        inconsistent: set[str] = set()

        for artifact in unit.scripts_and_markup:
            if not artifact.is_parsed:
                continue
            missing = _missing_identity(ctx, artifact)
            if missing is not None:
                yield missing
            identities = ctx.facts.identities_for(artifact.path)
            if not identities:
                continue
            if artifact.kind == ArtifactKind.DEVICE_SCRIPT:
                identities = sorted(identities, key=lambda i: i.role != IdentityRole.STATIC_FIELD)
            representatives.append(identities[0])

            distinct = list(dict.fromkeys(i.value for i in identities))
            if len(distinct) > 1:
                inconsistent.add(artifact.path)
                divergent = [i for i in identities if i.value != identities[0].value]
                yield Finding(
                    artifact.path,
                    f"Type names disagree within the file: {_describe(identities)}",
                    location=divergent[0].location,
                )

        key_locations = {f"node-red.nodes.{key}" for key in unit.descriptor_keys}
        representatives.extend(i for i in descriptor_ids if i.location in key_locations)

        if len({i.value for i in representatives}) <= 1:
            continue

        reference = _reference_identity(unit, representatives, inconsistent)
        divergent = sorted(
            (i for i in representatives if i.value != reference.value),
            key=lambda i: (i.artifact_path, i.location or ""),
        )
        found = ", ".join(f"\"{i.value}\" in {i.describe()}" for i in divergent)
        yield Finding(
            divergent[0].artifact_path,
            f"Type name mismatch for node {unit.key}: expected \"{reference.value}\" "
            f"as declared in {reference.describe()}, found {found}",
            location=divergent[0].location,
        )


def _reference_identity(unit: NodeUnit, representatives: list[DeclaredIdentity],
                        inconsistent: set[str]) -> DeclaredIdentity:
    """The host stub's declaration, else the most frequent value (ties by path).

    A stub that disagrees with itself is not trusted as the reference.
    """
    if unit.stub is not None and unit.stub.path not in inconsistent:
        for identity in representatives:
            if identity.artifact_path == unit.stub.path:
                return identity
    frequency = Counter(i.value for i in representatives)
    ordered = sorted(representatives, key=lambda i: (-frequency[i.value], i.artifact_path))
    return ordered[0]


def check_markup_includes_manifest(ctx: RuleContext) -> Iterator[Finding]:
    """R9: editor markup of an MCU node declares the device manifest inclusion."""
    for unit in ctx.package.units:
        if not unit.is_mcu or not _parsed(unit.markup):
            continue
        if not ctx.facts.value(unit.markup.path, DECLARES_MANIFEST_INCLUDE, False):
            yield Finding(
                unit.markup.path,
                f"Editor markup of MCU node {unit.key} does not declare "
                f"{ctx.settings.manifest_include_marker}",
            )


RULE_CATALOG: tuple[RuleSpec, ...] = (
    RuleSpec(
        id="J1",
        name="malformed-json",
        kinds=(ArtifactKind.PACKAGE_DESCRIPTOR, ArtifactKind.DEVICE_MANIFEST, ArtifactKind.LOCALE_BUNDLE),
        kind=DiagnosticKind.MALFORMED_JSON,
        severity=Severity.ERROR,
        summary="JSON artifacts must be syntactically valid",
        hint="Fix the JSON syntax error at the reported line and column.",
        check=check_malformed_json,
    ),
    RuleSpec(
        id="P1",
        name="mandatory-artifact",
        kinds=(ArtifactKind.PACKAGE_DESCRIPTOR, ArtifactKind.HOST_STUB_SCRIPT,
               ArtifactKind.DEVICE_SCRIPT, ArtifactKind.DEVICE_MANIFEST),
        kind=DiagnosticKind.MISSING_ARTIFACT,
        severity=Severity.ERROR,
        summary="Descriptor and host stub are required; MCU nodes also need device script and manifest",
        hint="Add the missing file next to the node's other files.",
        check=check_mandatory_artifacts,
    ),
    RuleSpec(
        id="P2",
        name="locale-bundle",
        kinds=(ArtifactKind.LOCALE_BUNDLE,),
        kind=DiagnosticKind.MISSING_ARTIFACT,
        severity=Severity.WARNING,
        summary="Each node should ship a locale bundle",
        hint="Add locales/<lang>/<node>.json next to the node for translated labels.",
        check=check_locale_bundles,
    ),
    RuleSpec(
        id="R1",
        name="module-format",
        kinds=(ArtifactKind.DEVICE_MANIFEST,),
        kind=DiagnosticKind.STRUCTURAL_VIOLATION,
        severity=Severity.ERROR,
        summary="Device manifest 'modules' must be an object, never an array",
        hint="Write modules as an object mapping module names to paths.",
        check=check_module_format,
    ),
    RuleSpec(
        id="R2",
        name="no-extension",
        kinds=(ArtifactKind.DEVICE_MANIFEST,),
        kind=DiagnosticKind.STRUCTURAL_VIOLATION,
        severity=Severity.ERROR,
        summary="Device manifest module paths must not end in a script suffix",
        hint="Drop the .js extension from the module path.",
        check=check_no_extension,
    ),
    RuleSpec(
        id="R3",
        name="preload-is-string",
        kinds=(ArtifactKind.DEVICE_MANIFEST,),
        kind=DiagnosticKind.STRUCTURAL_VIOLATION,
        severity=Severity.ERROR,
        summary="Device manifest 'preload' must be a string, never an array",
        hint="Write preload as a single module name string.",
        check=check_preload_is_string,
    ),
    RuleSpec(
        id="R4",
        name="descriptor-points-to-stub",
        kinds=(ArtifactKind.PACKAGE_DESCRIPTOR,),
        kind=DiagnosticKind.IDENTITY_MISMATCH,
        severity=Severity.ERROR,
        summary="package.json node registrations must reference host stubs, not device scripts",
        hint="Point node-red.nodes entries at the CommonJS stub (foo.js), not foo.mcu.js.",
        check=check_descriptor_points_to_stub,
    ),
    RuleSpec(
        id="R5",
        name="stub-is-commonjs",
        kinds=(ArtifactKind.HOST_STUB_SCRIPT,),
        kind=DiagnosticKind.STRUCTURAL_VIOLATION,
        severity=Severity.ERROR,
        summary="Host stub must be CommonJS and must not use the device-only module",
        hint="Use require() and module.exports in the stub; keep device imports in the .mcu.js file.",
        check=check_stub_is_commonjs,
    ),
    RuleSpec(
        id="R6",
        name="device-no-default-export",
        kinds=(ArtifactKind.DEVICE_SCRIPT,),
        kind=DiagnosticKind.STRUCTURAL_VIOLATION,
        severity=Severity.ERROR,
        summary="Device script must not use a default export",
        hint="Remove 'export default'; the node registers itself from a static block.",
        check=check_device_no_default_export,
    ),
    RuleSpec(
        id="R7",
        name="device-has-static-registration",
        kinds=(ArtifactKind.DEVICE_SCRIPT,),
        kind=DiagnosticKind.STRUCTURAL_VIOLATION,
        severity=Severity.ERROR,
        summary="Device script must register itself from a static initialization block",
        hint="Add 'static { RED.nodes.registerType(this.type, this); }' to the node class.",
        check=check_device_static_registration,
    ),
    RuleSpec(
        id="R8",
        name="identity-consistency",
        kinds=(ArtifactKind.HOST_STUB_SCRIPT, ArtifactKind.DEVICE_SCRIPT,
               ArtifactKind.EDITOR_MARKUP, ArtifactKind.PACKAGE_DESCRIPTOR),
        kind=DiagnosticKind.IDENTITY_MISMATCH,
        severity=Severity.ERROR,
        summary="The node type name must be identical in every file that declares it",
        hint="Use the exact same type string in the stub, device script, editor markup and package.json.",
        check=check_identity_consistency,
    ),
    RuleSpec(
        id="R9",
        name="markup-includes-manifest",
        kinds=(ArtifactKind.EDITOR_MARKUP,),
        kind=DiagnosticKind.STRUCTURAL_VIOLATION,
        severity=Severity.ERROR,
        summary="Editor markup of an MCU node must declare the device manifest inclusion",
        hint="Add moddable_manifest: {value: {include: \"manifest.json\"}} to the node defaults.",
        check=check_markup_includes_manifest,
    ),
)


def get_rule(rule_id: str) -> RuleSpec:
    """Look up a catalog rule by id (case-insensitive)."""
    for rule in RULE_CATALOG:
        if rule.id.upper() == rule_id.upper():
            return rule
    raise KeyError(f"Unknown rule id: {rule_id}")
