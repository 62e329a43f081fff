"""Subprocess execution."""

import asyncio
from pathlib import Path

from .errors import ProcessError


class ProcessRunner:
    """Runs package manager commands.

    Commands are awaited to completion; an optional timeout bounds each one.
    """

    def __init__(self, timeout: float | None = None, cwd: Path | None = None):
        self.timeout = timeout
        self.cwd = cwd

    async def _communicate(self, process, command: str) -> tuple[bytes, bytes]:
        try:
            return await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise ProcessError(f"'{command}' timed out after {self.timeout}s")

    async def run_capture(self, cmd: str, *args: str) -> str:
        """Run a command and return its stdout."""
        command = " ".join([cmd, *args])
        try:
            process = await asyncio.create_subprocess_exec(
                cmd,
                *args,
                cwd=self.cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessError(f"Failed to start '{command}': {e}")

        stdout, stderr = await self._communicate(process, command)
        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise ProcessError(
                f"'{command}' exited with code {process.returncode}: {detail}",
                returncode=process.returncode,
            )
        return stdout.decode("utf-8")

    async def run(self, cmd: str, args: list[str]) -> None:
        """Run a command with inherited stdio."""
        command = " ".join([cmd, *args])
        try:
            process = await asyncio.create_subprocess_exec(cmd, *args, cwd=self.cwd)
        except OSError as e:
            raise ProcessError(f"Failed to start '{command}': {e}")

        await self._communicate(process, command)
        if process.returncode != 0:
            raise ProcessError(
                f"'{command}' exited with code {process.returncode}",
                returncode=process.returncode,
            )
