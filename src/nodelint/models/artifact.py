"""Models for package artifacts, node units and extracted facts."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class ArtifactKind(str, Enum):
    """Recognized artifact kinds, inferred from filename and location."""
    HOST_STUB_SCRIPT = "host-stub-script"
    DEVICE_SCRIPT = "device-script"
    EDITOR_MARKUP = "editor-markup"
    PACKAGE_DESCRIPTOR = "package-descriptor"
    DEVICE_MANIFEST = "device-manifest"
    LOCALE_BUNDLE = "locale-bundle"

    @property
    def is_json(self) -> bool:
        return self in (
            ArtifactKind.PACKAGE_DESCRIPTOR,
            ArtifactKind.DEVICE_MANIFEST,
            ArtifactKind.LOCALE_BUNDLE,
        )


class IdentityRole(str, Enum):
    """Syntactic role in which a type name is declared."""
    REGISTRATION_CALL = "registration call argument"
    STATIC_FIELD = "static field initializer"
    TEMPLATE_NAME = "template name attribute"
    HELP_NAME = "help name attribute"
    DESCRIPTOR_KEY = "descriptor map key"


@dataclass(frozen=True)
class JsonErrorInfo:
    """Position and message of a JSON syntax error."""
    message: str
    line: int | None = None
    column: int | None = None

    @property
    def location(self) -> str | None:
        if self.line is None:
            return None
        if self.column is None:
            return f"line {self.line}"
        return f"line {self.line}, column {self.column}"


@dataclass(frozen=True)
class Artifact:
    """One loaded file of a package.

    Attributes:
        kind: Artifact kind
        path: POSIX path relative to the package root
        raw_text: File content as read
        parsed: JSON value for JSON kinds, lexical views for script/markup kinds
        parse_error: JSON syntax error, if the file could not be parsed
    """
    kind: ArtifactKind
    path: str
    raw_text: str
    parsed: Any = None
    parse_error: JsonErrorInfo | None = None

    @property
    def directory(self) -> str:
        parent = self.path.rsplit("/", 1)[0] if "/" in self.path else ""
        return parent

    @property
    def is_parsed(self) -> bool:
        return self.parse_error is None


@dataclass(frozen=True)
class DeclaredIdentity:
    """One place where a node type name is declared."""
    artifact_path: str
    role: IdentityRole
    value: str
    location: str | None = None

    def describe(self) -> str:
        return f"{self.artifact_path} ({self.role.value})"


@dataclass(frozen=True)
class StructuralFact:
    """A boolean or enum fact about one artifact."""
    artifact_path: str
    name: str
    value: bool | str
    location: str | None = None


@dataclass
class NodeUnit:
    """Artifacts describing a single node, grouped by directory and stem."""
    directory: str
    stem: str
    stub: Artifact | None = None
    device: Artifact | None = None
    markup: Artifact | None = None
    manifest: Artifact | None = None
    locales: list[Artifact] = field(default_factory=list)
    descriptor_keys: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.directory}/{self.stem}" if self.directory else self.stem

    @property
    def is_mcu(self) -> bool:
        """True when any device-side marker belongs to this unit."""
        return self.device is not None or self.manifest is not None

    @property
    def scripts_and_markup(self) -> list[Artifact]:
        return [a for a in (self.stub, self.device, self.markup) if a is not None]


@dataclass
class PackageRoot:
    """A scanned package root and everything found beneath it."""
    path: Path
    artifacts: list[Artifact] = field(default_factory=list)
    units: list[NodeUnit] = field(default_factory=list)

    @property
    def descriptor(self) -> Artifact | None:
        return next(
            (a for a in self.artifacts if a.kind == ArtifactKind.PACKAGE_DESCRIPTOR), None
        )

    def by_kind(self, kind: ArtifactKind) -> list[Artifact]:
        return [a for a in self.artifacts if a.kind == kind]

    def get(self, relative_path: str) -> Artifact | None:
        return next((a for a in self.artifacts if a.path == relative_path), None)
