"""Bump tracked dependencies across a yarn workspace."""

from collections.abc import Callable
from pathlib import Path

from .apply import apply
from .detect import is_yarn_v1_lockfile
from .errors import LockfileParseError
from .fsutil import read_text
from .lockfile import Lockfile
from .models import BumpConfig, BumpReport
from .reconcile import reconcile
from .registry import NpmRegistry, YarnRegistry
from .run import ProcessRunner
from .workspace import build_dependency_index, discover_manifests


def load_lockfile(path: Path) -> Lockfile:
    """Load a yarn v1 lockfile, rejecting other formats."""
    try:
        text = read_text(path)
    except OSError as e:
        raise LockfileParseError(f"Failed to read lockfile {path}: {e}") from e
    if not is_yarn_v1_lockfile(text):
        raise LockfileParseError(f"{path} is not a yarn v1 lockfile")
    return Lockfile.parse_text(text, path=path)


def create_registry(config: BumpConfig, runner: ProcessRunner):
    if config.registry_url:
        return NpmRegistry(config.registry_url, timeout=config.timeout or 30.0)
    return YarnRegistry(runner, package_manager=config.package_manager)


async def bump(
    root: Path,
    config: BumpConfig,
    *,
    registry=None,
    runner: ProcessRunner | None = None,
    log: Callable[[str], None] = print,
    dry_run: bool = False,
) -> BumpReport:
    """Check the registry for newer tracked packages and update the workspace.

    Manifests and the lockfile are read before the first registry query, and
    nothing is written until every query has succeeded.

    Args:
        root: Workspace root
        config: Run configuration
        registry: Object with an async ``fetch_latest(name)``, defaults from config
        runner: Process runner used for queries and the install
        log: Receives every progress line
        dry_run: Stop after computing the changes

    Returns:
        Report with the computed changes and whether the install ran
    """
    root = Path(root)
    runner = runner or ProcessRunner(timeout=config.timeout, cwd=root)
    registry = registry or create_registry(config, runner)

    packages = discover_manifests(root)
    index = build_dependency_index(packages, config.scopes)
    lockfile = load_lockfile(root / config.lockfile_name)

    result = await reconcile(index, lockfile, registry.fetch_latest, config.scopes, log=log)
    report = BumpReport(result=result, dry_run=dry_run)
    if dry_run or not result.has_changes:
        return report

    report.installed = await apply(
        result,
        lockfile=lockfile,
        runner=runner,
        package_manager=config.package_manager,
        log=log,
    )
    return report
