"""Errors raised by depbump. All of them abort the run."""


class BumpError(Exception):
    """Base class for every depbump failure."""


class DiscoveryError(BumpError):
    """Workspace manifests could not be found or read."""


class RegistryError(BumpError):
    """The registry query failed or returned something unusable."""


class LockfileParseError(BumpError):
    """The lockfile text is malformed."""

    def __init__(self, message: str, line: int | None = None):
        if line is not None:
            message = f"{message} (line {line})"
        super().__init__(message)
        self.line = line


class WriteError(BumpError):
    """Writing a manifest or the lockfile failed."""


class ProcessError(BumpError):
    """A subprocess exited with a non-zero status or timed out."""

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode


class InstallError(BumpError):
    """The reinstall step failed."""
