"""Latest published versions from the package registry."""

import json
from urllib.parse import quote

import httpx

from .errors import ProcessError, RegistryError
from .run import ProcessRunner
from .semver import parse_version

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"


def _latest_from_info(info: dict, package_name: str) -> str:
    dist_tags = info.get("dist-tags")
    latest = dist_tags.get("latest") if isinstance(dist_tags, dict) else None
    if not isinstance(latest, str) or not latest:
        raise RegistryError(f"No latest version published for {package_name}")
    if parse_version(latest) is None:
        raise RegistryError(f"Invalid latest version '{latest}' for {package_name}")
    return latest


def parse_info_output(output: str, package_name: str) -> str:
    """Extract the latest version from `yarn info --json` output.

    yarn prints one JSON object per line; warnings come first, the package
    metadata is the line with ``"type": "inspect"``.

    Args:
        output: Raw stdout of the info command
        package_name: Name of the package that was queried

    Returns:
        Latest version string
    """
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            raise RegistryError(f"Unparseable registry output for {package_name}: {e}")
        if isinstance(message, dict) and message.get("type") == "inspect":
            data = message.get("data")
            if not isinstance(data, dict):
                raise RegistryError(f"Missing package info for {package_name}")
            return _latest_from_info(data, package_name)

    raise RegistryError(f"Package {package_name} not found")


class YarnRegistry:
    """Queries the registry through the package manager's `info` command."""

    def __init__(self, runner: ProcessRunner, package_manager: str = "yarn"):
        self.runner = runner
        self.package_manager = package_manager
        self._cache: dict[str, str] = {}

    async def fetch_latest(self, package_name: str) -> str:
        if package_name in self._cache:
            return self._cache[package_name]

        try:
            output = await self.runner.run_capture(self.package_manager, "info", "--json", package_name)
        except ProcessError as e:
            raise RegistryError(f"Failed to fetch info for {package_name}: {e}") from e

        latest = parse_info_output(output, package_name)
        self._cache[package_name] = latest
        return latest


class NpmRegistry:
    """Queries an npm compatible registry over HTTP."""

    def __init__(self, registry_url: str = DEFAULT_REGISTRY_URL, timeout: float = 30.0):
        """Initialize registry client.

        Args:
            registry_url: Base URL of the registry
            timeout: Request timeout in seconds
        """
        self.registry_url = registry_url.rstrip("/")
        self.timeout = timeout
        self._cache: dict[str, str] = {}

    async def fetch_latest(self, package_name: str) -> str:
        if package_name in self._cache:
            return self._cache[package_name]

        info = await self._fetch_package_info(package_name)
        latest = _latest_from_info(info, package_name)
        self._cache[package_name] = latest
        return latest

    async def _fetch_package_info(self, package_name: str) -> dict:
        # scoped names keep their @ but escape the slash
        url = f"{self.registry_url}/{quote(package_name, safe='@')}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers={"Accept": "application/vnd.npm.install-v1+json"})
                if response.status_code == 404:
                    raise RegistryError(f"Package {package_name} not found")
                response.raise_for_status()
                info = response.json()
        except httpx.TimeoutException as e:
            raise RegistryError(f"Timeout fetching metadata for {package_name}") from e
        except httpx.HTTPStatusError as e:
            raise RegistryError(f"HTTP error fetching {package_name}: {e}") from e
        except httpx.HTTPError as e:
            raise RegistryError(f"Network error fetching {package_name}: {e}") from e
        except ValueError as e:
            raise RegistryError(f"Unparseable registry response for {package_name}: {e}") from e

        if not isinstance(info, dict):
            raise RegistryError(f"Unexpected registry response for {package_name}")
        return info
