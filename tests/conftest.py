"""Pytest configuration and fixtures."""

import json
from unittest.mock import AsyncMock

import pytest

REGISTRY_VERSIONS = {
    "@backstage/core": "1.0.6",
    "@backstage/core-api": "1.0.7",
    "@backstage/theme": "2.0.0",
}

HEADER = """# THIS IS AN AUTOGENERATED FILE. DO NOT EDIT THIS FILE DIRECTLY.
# yarn lockfile v1

"""

LOCKFILE = f"""{HEADER}
"@backstage/core@^1.0.5":
  version "1.0.6"
  dependencies:
    "@backstage/core-api" "^1.0.6"

"@backstage/core@^1.0.3":
  version "1.0.3"
  dependencies:
    "@backstage/core-api" "^1.0.3"

"@backstage/theme@^1.0.0":
  version "1.0.0"

"@backstage/core-api@^1.0.6":
  version "1.0.6"

"@backstage/core-api@^1.0.3":
  version "1.0.3"
"""

# The lockfile with stale entries removed, before the install runs
LOCKFILE_RESULT = f"""{HEADER}
"@backstage/core@^1.0.5":
  version "1.0.6"
  dependencies:
    "@backstage/core-api" "^1.0.6"

"@backstage/theme@^1.0.0":
  version "1.0.0"
"""


def info_output(name: str, versions: dict[str, str] = REGISTRY_VERSIONS) -> str:
    """Canned `yarn info --json` output for a package."""
    return json.dumps(
        {
            "type": "inspect",
            "data": {"name": name, "dist-tags": {"latest": versions[name]}},
        }
    )


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data))


@pytest.fixture
def lockfile_text():
    """Sample yarn.lock content with a diamond dependency."""
    return LOCKFILE


@pytest.fixture
def lockfile_result_text():
    """Expected yarn.lock content after the stale entries are removed."""
    return LOCKFILE_RESULT


@pytest.fixture
def registry_versions():
    return dict(REGISTRY_VERSIONS)


@pytest.fixture
def workspace(tmp_path):
    """A two package lerna workspace with a yarn.lock and no root package.json."""
    write_json(tmp_path / "lerna.json", {"packages": ["packages/*"]})
    write_json(
        tmp_path / "packages" / "a" / "package.json",
        {"name": "a", "dependencies": {"@backstage/core": "^1.0.5"}},
    )
    write_json(
        tmp_path / "packages" / "b" / "package.json",
        {
            "name": "b",
            "dependencies": {"@backstage/core": "^1.0.3", "@backstage/theme": "^1.0.0"},
        },
    )
    (tmp_path / "yarn.lock").write_text(LOCKFILE)
    return tmp_path


@pytest.fixture
def fake_runner():
    """Process runner answering `yarn info` from REGISTRY_VERSIONS."""
    runner = AsyncMock()
    runner.run_capture.side_effect = lambda cmd, *args: info_output(args[-1])
    runner.run.return_value = None
    return runner
