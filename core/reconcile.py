"""Version reconciliation between the registry, the lockfile and manifests."""

from collections.abc import Awaitable, Callable, Sequence

from .lockfile import Lockfile
from .models import DependencyIndex, LockRemoval, ManifestPatch, ReconcileResult
from .semver import bump_range, is_newer, min_version, parse_version, satisfies
from .workspace import is_tracked

RegistryFetch = Callable[[str], Awaitable[str]]


def tracked_names(index: DependencyIndex, lockfile: Lockfile, scopes: list[str]) -> list[str]:
    """Names declared in the workspace first, then tracked lockfile-only names.

    Declared names are checked last-discovered first, lockfile-only names
    follow in lockfile order.
    """
    names = list(reversed(index))
    for name in lockfile.keys():
        if name not in index and is_tracked(name, scopes):
            names.append(name)
    return names


def find_lock_removals(lockfile: Lockfile, name: str, target: str) -> list[LockRemoval]:
    """Lock entries for name that are within range of target but older than it.

    Entries whose range excludes the target are kept, they can't lock the
    package to an older version once the manifest range is bumped.
    """
    removals = []
    seen = set()
    for entry in lockfile.get(name):
        if entry.range in seen:
            continue
        if satisfies(target, entry.range) and is_newer(target, entry.version):
            seen.add(entry.range)
            removals.append(LockRemoval(name=name, range=entry.range, target=target))
    return removals


def find_manifest_patches(index: DependencyIndex, name: str, target: str) -> list[ManifestPatch]:
    """Manifest ranges for name that exclude target and sit below it."""
    target_version = parse_version(target)
    patches = []
    for usage in index.get(name, []):
        if satisfies(target, usage.range):
            continue
        lowest = min_version(usage.range)
        # non-semver ranges and ranges already ahead of the registry are left alone
        if lowest is None or target_version is None or lowest >= target_version:
            continue
        patches.append(
            ManifestPatch(
                name=name,
                package_name=usage.package_name,
                manifest_path=usage.manifest_path,
                section=usage.section,
                old_range=usage.range,
                new_range=bump_range(usage.range, target),
                target=target,
            )
        )
    return patches


async def reconcile(
    index: DependencyIndex,
    lockfile: Lockfile,
    registry_fetch: RegistryFetch,
    scopes: Sequence[str] = (),
    log: Callable[[str], None] | None = None,
) -> ReconcileResult:
    """Work out which lockfile entries to drop and which ranges to bump.

    Registry queries run one at a time in a fixed order so that the log
    output is deterministic. Nothing is written to disk.

    Args:
        index: Tracked dependency declarations across the workspace
        lockfile: The parsed lockfile
        registry_fetch: Coroutine returning the latest version for a name
        scopes: Scopes used to pick tracked names that only appear in the lockfile
        log: Called with each log line as soon as it is produced

    Returns:
        Removals, patches and the log lines describing them
    """
    result = ReconcileResult()

    def emit(line: str) -> None:
        result.log_lines.append(line)
        if log is not None:
            log(line)

    for name in tracked_names(index, lockfile, list(scopes)):
        emit(f"Checking for updates of {name}")
        result.targets[name] = await registry_fetch(name)

    for name, target in result.targets.items():
        result.removals.extend(find_lock_removals(lockfile, name, target))
    for name, target in result.targets.items():
        result.patches.extend(find_manifest_patches(index, name, target))

    if not result.has_changes:
        return result

    emit("Some packages are outdated, updating")
    for removal in result.removals:
        emit(
            f"Removing lockfile entry for {removal.name}@{removal.range} to bump to {removal.target}"
        )
    for patch in result.patches:
        emit(f"Bumping {patch.name} in {patch.package_name} to {patch.new_range}")

    return result
