"""Package manager detection for a workspace root."""

from pathlib import Path

LOCKFILES = {
    "yarn.lock": "yarn",
    "pnpm-lock.yaml": "pnpm",
    "package-lock.json": "npm",
}

YARN_V1_MARKER = "# yarn lockfile v1"


def identify(root: Path) -> str:
    """Detect the package manager from the lockfile present in root.

    Args:
        root: The workspace root directory

    Returns:
        Detected package manager: 'yarn', 'pnpm', 'npm', or 'unknown'
    """
    root = Path(root)
    for filename, manager in LOCKFILES.items():
        if (root / filename).is_file():
            return manager
    return "unknown"


def is_yarn_v1_lockfile(content: str) -> bool:
    """Check for the yarn v1 marker in the lockfile header.

    yarn 2+ lockfiles are YAML with a `__metadata` block and no marker.
    """
    for line in content.splitlines():
        if not line.startswith("#"):
            break
        if line.strip() == YARN_V1_MARKER:
            return True
    return False
