"""Tests for subprocess execution."""

import sys

import pytest

from core.errors import ProcessError
from core.run import ProcessRunner


class TestProcessRunner:
    """Test running commands."""

    @pytest.mark.asyncio
    async def test_run_capture_returns_stdout(self):
        """Should return the command output."""
        runner = ProcessRunner()
        output = await runner.run_capture(sys.executable, "-c", "print('hello')")
        assert output.strip() == "hello"

    @pytest.mark.asyncio
    async def test_run_capture_failure(self):
        """Should raise with the exit code and stderr."""
        runner = ProcessRunner()

        with pytest.raises(ProcessError) as exc_info:
            await runner.run_capture(sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)")
        assert exc_info.value.returncode == 3
        assert "boom" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_run_timeout(self):
        """Should kill commands that exceed the timeout."""
        runner = ProcessRunner(timeout=0.5)

        with pytest.raises(ProcessError) as exc_info:
            await runner.run(sys.executable, ["-c", "import time; time.sleep(10)"])
        assert "timed out" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_run_in_cwd(self, tmp_path):
        """Should run commands in the configured directory."""
        runner = ProcessRunner(cwd=tmp_path)
        await runner.run(sys.executable, ["-c", "open('marker', 'w').close()"])
        assert (tmp_path / "marker").exists()

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        """Should raise when the command can't be started."""
        runner = ProcessRunner()
        with pytest.raises(ProcessError):
            await runner.run("definitely-not-a-real-command-xyz", ["install"])
