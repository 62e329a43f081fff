"""npm-style semantic version ranges.

Ranges such as ``^1.0.5``, ``~2.1``, ``1.x || >=3.0.0`` or ``1.0.0 - 1.4``
are desugared into comparator sets and evaluated with
:class:`packaging.specifiers.SpecifierSet`. Anything that is not a semver
range (``npm:`` aliases, ``file:``/``link:`` paths, git urls, ``workspace:``
protocols, dist-tags) parses to ``None`` and never satisfies a version.
"""

import re

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

_WILDCARDS = {"x", "X", "*"}

_PARTIAL = re.compile(
    r"^v?(?P<major>\d+|[xX*])"
    r"(?:\.(?P<minor>\d+|[xX*])"
    r"(?:\.(?P<patch>\d+|[xX*])(?P<pre>-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?)?)?$"
)
_COMPARATOR = re.compile(r"^(?P<op><=|>=|<|>|=|\^|~>|~)?(?P<version>.+)$")
_SIMPLE_RANGE = re.compile(
    r"^(?P<op>\^|~|>=|=)?"
    r"v?\d+\.\d+\.\d+(?:-[0-9A-Za-z.-]+)?(?:\+[0-9A-Za-z.-]+)?$"
)
_OPERATOR_SPACE = re.compile(r"(<=|>=|<|>|=|\^|~>|~)\s+")

DEFAULT_PREFIX = "^"


def _semver(text: str) -> Version:
    version = Version(text)
    # PEP 440 reads `1.0.0-1` as a post release, npm as a prerelease below 1.0.0
    if version.is_postrelease:
        raise InvalidVersion(f"Unorderable prerelease: {text!r}")
    return version


def parse_version(text: str) -> Version | None:
    """Parse a semver string into a comparable version.

    Returns None for versions that cannot be ordered, e.g. prerelease tags
    without a PEP 440 equivalent such as ``1.0.0-next.3`` or ``1.0.0-1``.
    """
    try:
        return _semver(text.strip().lstrip("=v"))
    except InvalidVersion:
        return None


def _partial(text: str) -> tuple[int | None, int | None, int | None, str] | None:
    match = _PARTIAL.match(text)
    if not match:
        return None
    parts = []
    for key in ("major", "minor", "patch"):
        value = match.group(key)
        parts.append(None if value is None or value in _WILDCARDS else int(value))
    major, minor, patch = parts
    # 1.x.3 is meaningless, treat everything after a wildcard as a wildcard
    if major is None:
        minor = patch = None
    elif minor is None:
        patch = None
    return major, minor, patch, match.group("pre") or ""


def _version(major: int, minor: int | None, patch: int | None, pre: str = "") -> str:
    text = f"{major}.{minor or 0}.{patch or 0}{pre if patch is not None else ''}"
    return str(_semver(text))


def _desugar(op: str, partial: tuple) -> list[tuple[str, str]]:
    major, minor, patch, pre = partial

    if major is None:
        if op in ("<", ">"):
            return [("<", "0.0.0")]
        return []

    lower = _version(major, minor, patch, pre)

    if op == "^":
        if minor is None or major > 0:
            upper = _version(major + 1, 0, 0)
        elif patch is None or minor > 0:
            upper = _version(0, minor + 1, 0)
        else:
            upper = _version(0, 0, patch + 1)
        return [(">=", lower), ("<", upper)]

    if op in ("~", "~>"):
        if minor is None:
            upper = _version(major + 1, 0, 0)
        else:
            upper = _version(major, minor + 1, 0)
        return [(">=", lower), ("<", upper)]

    if op in ("", "="):
        if minor is None:
            return [(">=", lower), ("<", _version(major + 1, 0, 0))]
        if patch is None:
            return [(">=", lower), ("<", _version(major, minor + 1, 0))]
        return [("==", lower)]

    if op == ">=":
        return [(">=", lower)]

    if op == ">":
        if minor is None:
            return [(">=", _version(major + 1, 0, 0))]
        if patch is None:
            return [(">=", _version(major, minor + 1, 0))]
        return [(">", lower)]

    if op == "<":
        return [("<", lower)]

    # <=
    if minor is None:
        return [("<", _version(major + 1, 0, 0))]
    if patch is None:
        return [("<", _version(major, minor + 1, 0))]
    return [("<=", lower)]


def _hyphen(low: str, high: str) -> list[tuple[str, str]] | None:
    lower = _partial(low)
    upper = _partial(high)
    if lower is None or upper is None:
        return None

    comparators = _desugar(">=", lower)
    major, minor, patch, pre = upper
    if major is None:
        return comparators
    if minor is None:
        comparators.append(("<", _version(major + 1, 0, 0)))
    elif patch is None:
        comparators.append(("<", _version(major, minor + 1, 0)))
    else:
        comparators.append(("<=", _version(major, minor, patch, pre)))
    return comparators


def _comparators(alternative: str) -> list[tuple[str, str]] | None:
    alternative = alternative.strip()
    if not alternative:
        return []

    if " - " in alternative:
        low, _, high = alternative.partition(" - ")
        return _hyphen(low.strip(), high.strip())

    comparators: list[tuple[str, str]] = []
    for token in _OPERATOR_SPACE.sub(r"\1", alternative).split():
        match = _COMPARATOR.match(token)
        if not match:
            return None
        partial = _partial(match.group("version"))
        if partial is None:
            return None
        comparators.extend(_desugar(match.group("op") or "", partial))
    return comparators


def parse_range(text: str) -> list[SpecifierSet] | None:
    """Parse an npm range into one SpecifierSet per ``||`` alternative.

    Args:
        text: The range as written in a manifest or lockfile key

    Returns:
        List of specifier sets, or None if the range is not a semver range
    """
    specifier_sets = []
    for alternative in text.split("||"):
        try:
            comparators = _comparators(alternative)
        except InvalidVersion:
            return None
        if comparators is None:
            return None
        try:
            specifier_sets.append(SpecifierSet(",".join(f"{op}{v}" for op, v in comparators)))
        except InvalidSpecifier:
            return None
    return specifier_sets


def satisfies(version: str | Version, range_text: str) -> bool:
    """Check whether a version is admitted by an npm range."""
    if isinstance(version, str):
        version = parse_version(version)
    if version is None:
        return False

    specifier_sets = parse_range(range_text)
    if not specifier_sets:
        return False
    return any(version in specifier_set for specifier_set in specifier_sets)


def min_version(range_text: str) -> Version | None:
    """Lowest version admitted by a range, ignoring exclusive bounds."""
    specifier_sets = parse_range(range_text)
    if not specifier_sets:
        return None

    lowest = None
    for specifier_set in specifier_sets:
        bound = Version("0.0.0")
        for specifier in specifier_set:
            if specifier.operator in (">=", ">", "=="):
                bound = max(bound, Version(specifier.version))
        if lowest is None or bound < lowest:
            lowest = bound
    return lowest


def range_prefix(range_text: str) -> str:
    """Operator prefix of a simple range: ``^``, ``~``, ``>=``, ``=`` or ``""``.

    Compound ranges, x-ranges and upper bounds fall back to ``^``.
    """
    match = _SIMPLE_RANGE.match(range_text.strip())
    if not match:
        return DEFAULT_PREFIX
    return match.group("op") or ""


def bump_range(range_text: str, version: str) -> str:
    """Rewrite a range to point at a new version, keeping its operator."""
    return f"{range_prefix(range_text)}{version}"


def is_newer(candidate: str, current: str) -> bool:
    """True if candidate is strictly greater than current."""
    new = parse_version(candidate)
    old = parse_version(current)
    if new is None or old is None:
        return False
    return new > old
