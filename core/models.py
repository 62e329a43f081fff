"""Core data models for depbump."""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class WorkspacePackage:
    """A single package.json discovered in the workspace."""

    name: str
    path: Path
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    peer_dependencies: dict[str, str] = field(default_factory=dict)

    def sections(self) -> list[tuple[str, dict[str, str]]]:
        return [
            ("dependencies", self.dependencies),
            ("devDependencies", self.dev_dependencies),
            ("peerDependencies", self.peer_dependencies),
        ]


@dataclass
class DependencyUsage:
    """One declaration of a tracked package inside a manifest."""

    name: str
    range: str
    package_name: str
    manifest_path: Path
    section: str = "dependencies"


# tracked package name -> usages, in discovery order
DependencyIndex = dict[str, list[DependencyUsage]]


@dataclass
class LockSpec:
    """A single `name@range` key in a lockfile block header."""

    name: str
    range: str
    raw: str  # token as written, quoted or not


@dataclass
class LockEntry:
    """A lockfile block, possibly shared by several range aliases."""

    specs: list[LockSpec]
    version: str
    dependencies: dict[str, str] = field(default_factory=dict)
    body: list[str] = field(default_factory=list)
    blank_lines: int = 1  # blank lines separating this block from the previous one

    def header(self) -> str:
        return ", ".join(spec.raw for spec in self.specs) + ":"


@dataclass
class LockQueryEntry:
    """Resolved version for one (name, range) key."""

    range: str
    version: str


@dataclass
class LockRemoval:
    """A lockfile entry that is older than the registry version."""

    name: str
    range: str
    target: str


@dataclass
class ManifestPatch:
    """A manifest range that no longer admits the registry version."""

    name: str
    package_name: str
    manifest_path: Path
    section: str
    old_range: str
    new_range: str
    target: str


@dataclass
class ReconcileResult:
    """Decisions computed by the reconciler, nothing written yet."""

    targets: dict[str, str] = field(default_factory=dict)
    removals: list[LockRemoval] = field(default_factory=list)
    patches: list[ManifestPatch] = field(default_factory=list)
    log_lines: list[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.removals or self.patches)


@dataclass
class BumpConfig:
    """Configuration for a single bump run."""

    scopes: list[str]
    package_manager: str = "yarn"
    lockfile_name: str = "yarn.lock"
    registry_url: str | None = None  # query the registry over HTTP instead of `yarn info`
    timeout: float | None = None


@dataclass
class BumpReport:
    """Outcome of a bump run."""

    result: ReconcileResult
    installed: bool = False
    dry_run: bool = False
