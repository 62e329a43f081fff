"""File reading and writing helpers."""

import os
import tempfile
from pathlib import Path

from .errors import WriteError


def write_atomic(path: Path, content: str) -> None:
    """Write text to a sibling temp file and rename it over the target."""
    path = Path(path)
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(content)
            if path.exists():
                os.chmod(tmp_name, path.stat().st_mode & 0o777)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise WriteError(f"Failed to write {path}: {e}") from e


def read_text(path: Path) -> str:
    """Read text without translating line endings."""
    with open(path, encoding="utf-8", newline="") as handle:
        return handle.read()
