"""Writes reconciliation decisions to disk and reinstalls."""

import json
from collections.abc import Callable
from pathlib import Path

from .errors import InstallError, ProcessError, WriteError
from .fsutil import write_atomic
from .lockfile import Lockfile
from .models import ManifestPatch, ReconcileResult
from .run import ProcessRunner


def render_manifest(path: Path, patches: list[ManifestPatch]) -> str:
    """Return the manifest text with every patch applied.

    Only the matching range strings are replaced, key order is preserved.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise WriteError(f"Failed to load manifest {path}: {e}") from e

    for patch in patches:
        deps = data.get(patch.section)
        if not isinstance(deps, dict) or deps.get(patch.name) != patch.old_range:
            raise WriteError(
                f"{patch.name}@{patch.old_range} is no longer declared in "
                f"{patch.section} of {path}"
            )
        deps[patch.name] = patch.new_range

    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def render_changes(result: ReconcileResult, lockfile: Lockfile) -> dict[Path, str]:
    """Render the new lockfile and manifest contents without writing them."""
    outputs: dict[Path, str] = {}

    if result.removals:
        for removal in result.removals:
            lockfile.remove(removal.name, removal.range)
        if lockfile.path is None:
            raise WriteError("Lockfile has no path to save to")
        outputs[lockfile.path] = lockfile.to_text()

    by_manifest: dict[Path, list[ManifestPatch]] = {}
    for patch in result.patches:
        by_manifest.setdefault(patch.manifest_path, []).append(patch)
    for path, patches in by_manifest.items():
        outputs[path] = render_manifest(path, patches)

    return outputs


async def apply(
    result: ReconcileResult,
    *,
    lockfile: Lockfile,
    runner: ProcessRunner,
    package_manager: str = "yarn",
    log: Callable[[str], None] = print,
) -> bool:
    """Persist removals and patches, then run the install once.

    Everything is rendered in memory before the first write. A write that
    fails halfway leaves earlier files already replaced.

    Returns:
        True if the install ran, False when there was nothing to do
    """
    if not result.has_changes:
        return False

    outputs = render_changes(result, lockfile)
    for path, content in outputs.items():
        write_atomic(path, content)

    log(f"Running '{package_manager} install' to install new versions")
    try:
        await runner.run(package_manager, ["install"])
    except ProcessError as e:
        raise InstallError(f"'{package_manager} install' failed: {e}") from e
    return True
