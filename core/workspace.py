"""Workspace package discovery and the tracked dependency index."""

import json
from fnmatch import fnmatchcase
from pathlib import Path

from .errors import DiscoveryError
from .models import DependencyIndex, DependencyUsage, WorkspacePackage

DEFAULT_PACKAGE_GLOBS = ["packages/*"]

EXCLUDES = {"node_modules", ".git"}


def _read_json(path: Path) -> dict:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise DiscoveryError(f"Malformed JSON in {path}: {e}") from e
    except OSError as e:
        raise DiscoveryError(f"Failed to read {path}: {e}") from e
    if not isinstance(data, dict):
        raise DiscoveryError(f"Expected an object in {path}")
    return data


def _dependency_map(data: dict, key: str, path: Path) -> dict[str, str]:
    deps = data.get(key) or {}
    if not isinstance(deps, dict):
        raise DiscoveryError(f"'{key}' in {path} is not an object")
    return dict(deps)


def package_globs(root: Path) -> list[str]:
    """Workspace globs from package.json `workspaces`, or lerna.json `packages`.

    Either file may be missing, but not both. A root package.json without
    any workspace configuration defaults to `packages/*`.
    """
    root_manifest = root / "package.json"
    lerna_config = root / "lerna.json"
    if not root_manifest.is_file() and not lerna_config.is_file():
        raise DiscoveryError(f"No package.json or lerna.json found in {root}")

    if root_manifest.is_file():
        workspaces = _read_json(root_manifest).get("workspaces")
        if isinstance(workspaces, dict):
            workspaces = workspaces.get("packages")
        if workspaces:
            return list(workspaces)

    if lerna_config.is_file():
        packages = _read_json(lerna_config).get("packages")
        if packages:
            return list(packages)

    return list(DEFAULT_PACKAGE_GLOBS)


def load_package(manifest_path: Path) -> WorkspacePackage:
    """Read a single package.json."""
    data = _read_json(manifest_path)
    name = data.get("name")
    if not isinstance(name, str) or not name:
        raise DiscoveryError(f"Package at {manifest_path} has no name")

    return WorkspacePackage(
        name=name,
        path=manifest_path,
        dependencies=_dependency_map(data, "dependencies", manifest_path),
        dev_dependencies=_dependency_map(data, "devDependencies", manifest_path),
        peer_dependencies=_dependency_map(data, "peerDependencies", manifest_path),
    )


def discover_manifests(root: Path) -> list[WorkspacePackage]:
    """Find every workspace package under root.

    Packages are returned in the order of the declared workspace globs, and
    sorted by path within each glob.

    Args:
        root: The monorepo root, holding package.json or lerna.json

    Returns:
        Discovered workspace packages
    """
    root = Path(root).resolve()
    packages: list[WorkspacePackage] = []
    seen: set[Path] = set()

    for pattern in package_globs(root):
        if pattern.startswith("!"):
            continue
        for directory in sorted(root.glob(pattern)):
            manifest_path = directory / "package.json"
            if manifest_path in seen or not manifest_path.is_file():
                continue
            if EXCLUDES.intersection(directory.relative_to(root).parts):
                continue
            seen.add(manifest_path)
            packages.append(load_package(manifest_path))

    return packages


def _scope_pattern(scope: str) -> str:
    if scope.startswith("@") and "/" not in scope:
        return f"{scope}/*"
    if scope.endswith("/"):
        return f"{scope}*"
    return scope


def is_tracked(name: str, scopes: list[str]) -> bool:
    """Check a package name against scopes like `@backstage`, `@backstage/*` or `react`."""
    return any(fnmatchcase(name, _scope_pattern(scope)) for scope in scopes)


def build_dependency_index(packages: list[WorkspacePackage], scopes: list[str]) -> DependencyIndex:
    """Collect every declaration of a tracked package across the workspace."""
    index: DependencyIndex = {}
    for package in packages:
        for section, deps in package.sections():
            for name, range_ in deps.items():
                if not is_tracked(name, scopes):
                    continue
                index.setdefault(name, []).append(
                    DependencyUsage(
                        name=name,
                        range=range_,
                        package_name=package.name,
                        manifest_path=package.path,
                        section=section,
                    )
                )
    return index
