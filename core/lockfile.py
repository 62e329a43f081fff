"""yarn v1 lockfile parsing and rendering.

The lockfile is parsed into :class:`LockEntry` blocks that keep their body
lines verbatim, so rendering an unmodified lockfile reproduces the original
text byte for byte. Only block headers are re-rendered, which is what makes
removing a single alias from a shared block possible.
"""

import json
import re
from dataclasses import replace
from pathlib import Path

from .errors import LockfileParseError, WriteError
from .fsutil import read_text, write_atomic
from .models import LockEntry, LockQueryEntry, LockSpec

HEADER = "# THIS IS AN AUTOGENERATED FILE. DO NOT EDIT THIS FILE DIRECTLY.\n# yarn lockfile v1\n\n\n"

ENTRY_PATTERN = re.compile(r"^((?:@[^/]+/)?[^@/]+)@(.+)$")
_TOKEN = re.compile(r'"(?:[^"\\]|\\.)*"|[^\s",]+')
_SEPARATOR = re.compile(r"^\s*,\s*$")


def _unquote(token: str) -> str:
    if token.startswith('"'):
        try:
            return json.loads(token)
        except json.JSONDecodeError as e:
            raise LockfileParseError(f"Invalid quoted string {token}: {e}") from e
    return token


def _parse_header(line: str, lineno: int) -> list[LockSpec]:
    if not line.endswith(":"):
        raise LockfileParseError(f"Expected ':' at end of entry header {line!r}", lineno)

    text = line[:-1]
    specs = []
    position = 0
    for match in _TOKEN.finditer(text):
        gap = text[position:match.start()]
        if specs:
            if not _SEPARATOR.match(gap):
                raise LockfileParseError(f"Malformed entry header {line!r}", lineno)
        elif gap.strip():
            raise LockfileParseError(f"Malformed entry header {line!r}", lineno)
        position = match.end()

        raw = match.group(0)
        key = _unquote(raw)
        parsed = ENTRY_PATTERN.match(key)
        if not parsed:
            raise LockfileParseError(f"Failed to parse lockfile entry '{key}'", lineno)
        specs.append(LockSpec(name=parsed.group(1), range=parsed.group(2), raw=raw))

    if not specs or text[position:].strip():
        raise LockfileParseError(f"Malformed entry header {line!r}", lineno)
    return specs


def _split_field(line: str, lineno: int) -> tuple[str, str | None]:
    tokens = _TOKEN.findall(line.strip())
    if len(tokens) == 1 and tokens[0].endswith(":"):
        return _unquote(tokens[0][:-1]), None
    if len(tokens) != 2:
        raise LockfileParseError(f"Malformed lockfile field {line.strip()!r}", lineno)
    return _unquote(tokens[0]), _unquote(tokens[1])


def _finish_block(header: list[LockSpec], body: list[str], start: int, blank_lines: int) -> LockEntry:
    version = None
    dependencies: dict[str, str] = {}
    section = None

    for offset, line in enumerate(body, start=start + 1):
        indent = len(line) - len(line.lstrip(" "))
        key, value = _split_field(line, offset)
        if indent == 2:
            section = key if value is None else None
            if key == "version":
                version = value
        elif indent == 4 and section is not None:
            if section == "dependencies":
                dependencies[key] = value
        else:
            raise LockfileParseError(f"Unexpected indentation in {line.strip()!r}", offset)

    if version is None:
        names = ", ".join(f"{spec.name}@{spec.range}" for spec in header)
        raise LockfileParseError(f"Lockfile entry {names} has no version", start)

    return LockEntry(
        specs=header,
        version=version,
        dependencies=dependencies,
        body=body,
        blank_lines=blank_lines,
    )


def parse_with_layout(text: str) -> tuple[str, list[LockEntry], str]:
    """Parse lockfile text, returning the header block, entries and trailer.

    CRLF line endings are read as LF; :class:`Lockfile` restores them on
    rendering.
    """
    lines = text.replace("\r\n", "\n").split("\n")

    start = 0
    while start < len(lines) and (not lines[start] or lines[start].startswith("#")):
        start += 1
    if start == len(lines):
        return "\n".join(lines), [], ""

    end = len(lines)
    while end > start and not lines[end - 1]:
        end -= 1

    prefix = "".join(line + "\n" for line in lines[:start])
    suffix = "\n" * (len(lines) - end)

    entries: list[LockEntry] = []
    header: list[LockSpec] | None = None
    header_line = 0
    header_blanks = 0
    blanks = 0
    body: list[str] = []

    for index in range(start, end):
        line = lines[index]
        lineno = index + 1

        if not line:
            if header is not None:
                entries.append(_finish_block(header, body, header_line, header_blanks))
                header, body = None, []
            blanks += 1
            continue

        if line.startswith("#"):
            raise LockfileParseError("Unexpected comment between lockfile entries", lineno)

        if line.startswith(" "):
            if header is None:
                raise LockfileParseError(f"Field {line.strip()!r} outside of an entry", lineno)
            body.append(line)
            continue

        if header is not None:
            raise LockfileParseError("Missing blank line between lockfile entries", lineno)
        header = _parse_header(line, lineno)
        header_line = lineno
        header_blanks = blanks
        blanks = 0

    if header is not None:
        entries.append(_finish_block(header, body, header_line, header_blanks))

    return prefix, entries, suffix


def parse(text: str) -> list[LockEntry]:
    """Parse lockfile text into entries, in file order."""
    return parse_with_layout(text)[1]


def serialize(entries: list[LockEntry], prefix: str = HEADER, suffix: str = "\n") -> str:
    """Render entries back into lockfile text."""
    parts = [prefix]
    for position, entry in enumerate(entries):
        if position:
            parts.append("\n" * (max(entry.blank_lines, 1) + 1))
        parts.append("\n".join([entry.header(), *entry.body]))
    if entries:
        parts.append(suffix)
    return "".join(parts)


def remove(entries: list[LockEntry], name: str, range_: str) -> list[LockEntry]:
    """Drop the ``name@range`` key, and its block once no key is left.

    Unknown keys are ignored.
    """
    remaining = []
    for entry in entries:
        specs = [spec for spec in entry.specs if not (spec.name == name and spec.range == range_)]
        if len(specs) == len(entry.specs):
            remaining.append(entry)
        elif specs:
            remaining.append(replace(entry, specs=specs))
    return remaining


class Lockfile:
    """A yarn.lock file loaded into memory."""

    def __init__(
        self,
        entries: list[LockEntry],
        prefix: str = HEADER,
        suffix: str = "\n",
        path: Path | None = None,
        newline: str = "\n",
    ):
        self.entries = entries
        self.prefix = prefix
        self.suffix = suffix
        self.path = path
        self.newline = newline

    @classmethod
    def parse_text(cls, text: str, path: Path | None = None) -> "Lockfile":
        prefix, entries, suffix = parse_with_layout(text)
        newline = "\r\n" if "\r\n" in text else "\n"
        return cls(entries, prefix=prefix, suffix=suffix, path=path, newline=newline)

    @classmethod
    def load(cls, path: Path) -> "Lockfile":
        try:
            text = read_text(path)
        except OSError as e:
            raise LockfileParseError(f"Failed to read lockfile {path}: {e}")
        return cls.parse_text(text, path=Path(path))

    def keys(self) -> list[str]:
        """Package names in the order they first appear."""
        names: dict[str, None] = {}
        for entry in self.entries:
            for spec in entry.specs:
                names.setdefault(spec.name)
        return list(names)

    def get(self, name: str) -> list[LockQueryEntry]:
        return [
            LockQueryEntry(range=spec.range, version=entry.version)
            for entry in self.entries
            for spec in entry.specs
            if spec.name == name
        ]

    def remove(self, name: str, range_: str) -> bool:
        """Remove a key, returning whether anything was removed."""
        found = any(
            spec.name == name and spec.range == range_
            for entry in self.entries
            for spec in entry.specs
        )
        if found:
            self.entries = remove(self.entries, name, range_)
        return found

    def to_text(self) -> str:
        text = serialize(self.entries, prefix=self.prefix, suffix=self.suffix)
        if self.newline != "\n":
            text = text.replace("\n", self.newline)
        return text

    def save(self, path: Path | None = None) -> None:
        target = path or self.path
        if target is None:
            raise WriteError("Lockfile has no path to save to")
        write_atomic(target, self.to_text())
