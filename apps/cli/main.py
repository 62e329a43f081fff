"""CLI application for depbump."""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console

from core.bump import bump
from core.detect import identify
from core.models import BumpConfig, BumpReport
from core.run import ProcessRunner

console = Console()

SUPPORTED_PACKAGE_MANAGERS = ("yarn",)


def format_json_output(report: BumpReport) -> str:
    """Format JSON output."""
    result = report.result
    return json.dumps(
        {
            "targets": result.targets,
            "removals": [
                {"name": removal.name, "range": removal.range, "target": removal.target}
                for removal in result.removals
            ],
            "patches": [
                {
                    "name": patch.name,
                    "package": patch.package_name,
                    "manifest": str(patch.manifest_path),
                    "section": patch.section,
                    "old_range": patch.old_range,
                    "new_range": patch.new_range,
                }
                for patch in result.patches
            ],
            "installed": report.installed,
            "dry_run": report.dry_run,
        },
        indent=2,
    )


def print_line(line: str) -> None:
    console.print(line, markup=False, highlight=False, soft_wrap=True)


def quiet(line: str) -> None:
    pass


app = typer.Typer(
    name="depbump",
    help="depbump - Bump a family of published packages across a yarn workspace",
    add_completion=False,
)


@app.command()
def main(
    root: str = typer.Argument(".", help="Workspace root containing package.json and yarn.lock"),
    scopes: list[str] = typer.Option(
        ...,
        "--scope",
        "-s",
        envvar="DEPBUMP_SCOPE",
        help="Tracked packages, e.g. '@backstage' or '@backstage/core' (repeatable)",
    ),
    package_manager: str | None = typer.Option(None, "--package-manager", help="Package manager to run"),
    registry_url: str | None = typer.Option(None, "--registry-url", help="Query this registry over HTTP"),
    timeout: float | None = typer.Option(None, "--timeout", help="Timeout in seconds for each command"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Show changes without applying"),
    format_type: str = typer.Option("text", "--format", help="Output format: text or json"),
) -> None:
    """depbump - Update tracked dependencies and the lockfile to the latest versions."""

    try:
        root_path = Path(root)
        if not root_path.is_dir():
            console.print(f"Error: Directory {root} not found", style="red")
            raise typer.Exit(1)

        manager = package_manager or identify(root_path)
        if manager not in SUPPORTED_PACKAGE_MANAGERS:
            console.print(f"Error: Unsupported package manager: {manager}", style="red")
            raise typer.Exit(1)

        config = BumpConfig(
            scopes=list(scopes),
            package_manager=manager,
            registry_url=registry_url,
            timeout=timeout,
        )
        runner = ProcessRunner(timeout=timeout, cwd=root_path)
        log = quiet if format_type == "json" else print_line

        report = asyncio.run(bump(root_path, config, runner=runner, log=log, dry_run=dry_run))

        if format_type == "json":
            console.print(format_json_output(report), markup=False, highlight=False, soft_wrap=True)
        elif not report.result.has_changes:
            console.print("All tracked packages are up to date")

        if not report.result.has_changes:
            raise typer.Exit(2)  # No changes exit code

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"Error: {e}", style="red", markup=False)
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
