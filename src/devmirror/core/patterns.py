"""Include/exclude glob filtering relative to a project root.

Patterns use the same dialect as the frontend tooling they are copied from:

- ``*`` matches any run of characters inside one path segment
- ``?`` matches one character, ``[abc]`` / ``[!abc]`` a character class
- ``**`` as a whole segment matches zero or more directories
- ``{a,b}`` expands to alternatives (one level, no nesting)
- wildcards never match a segment starting with ``.`` unless the pattern
  segment itself starts with ``.``

Example:
    from devmirror.core.patterns import FilterSpec, PathFilter

    flt = PathFilter(FilterSpec(), root=Path("/work/frontend"))
    flt.matches("/work/frontend/templates/index.html")  # True
    flt.matches("/work/other/index.html")               # False (outside root)
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable, Optional, Pattern, Union

from .exceptions import FilterConstructionError

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE_PATTERNS: tuple[str, ...] = ("**/*.html", "**/*.svg")
DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = ()

_GLOBSTAR = "**"
# Segment must not start with a dot unless the pattern says so.
_NO_DOT = r"(?!\.)"


@dataclass(frozen=True)
class FilterSpec:
    """Ordered include/exclude patterns. Immutable once constructed."""

    include_patterns: tuple[str, ...] = DEFAULT_INCLUDE_PATTERNS
    exclude_patterns: tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS

    def __post_init__(self) -> None:
        object.__setattr__(self, "include_patterns", tuple(self.include_patterns))
        object.__setattr__(self, "exclude_patterns", tuple(self.exclude_patterns))

    @classmethod
    def from_patterns(
        cls,
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None,
    ) -> FilterSpec:
        """Build a spec, falling back to the defaults for unspecified lists."""
        return cls(
            include_patterns=tuple(include) if include is not None else DEFAULT_INCLUDE_PATTERNS,
            exclude_patterns=tuple(exclude) if exclude is not None else DEFAULT_EXCLUDE_PATTERNS,
        )


def _find_unescaped(pattern: str, char: str, start: int = 0) -> int:
    """Index of the first ``char`` at or after ``start`` not preceded by a backslash."""
    i = start
    while i < len(pattern):
        c = pattern[i]
        if c == "\\":
            i += 2
            continue
        if c == char:
            return i
        i += 1
    return -1


def _split_unescaped(text: str, sep: str) -> list[str]:
    parts: list[str] = []
    begin = 0
    idx = _find_unescaped(text, sep)
    while idx != -1:
        parts.append(text[begin:idx])
        begin = idx + 1
        idx = _find_unescaped(text, sep, begin)
    parts.append(text[begin:])
    return parts


def _expand_braces(pattern: str) -> list[str]:
    """Expand brace groups like 'foo.{a,b}' into ['foo.a', 'foo.b'].

    Supports multiple brace groups via recursion. A group with a single
    alternative is kept literally, as are braces escaped with a backslash.
    """
    start = _find_unescaped(pattern, "{")
    if start == -1:
        if _find_unescaped(pattern, "}") != -1:
            raise FilterConstructionError(f"Unbalanced '}}' in pattern: {pattern!r}", pattern=pattern)
        return [pattern]
    end = _find_unescaped(pattern, "}", start + 1)
    if end == -1:
        raise FilterConstructionError(f"Unterminated '{{' in pattern: {pattern!r}", pattern=pattern)

    before = pattern[:start]
    inside = pattern[start + 1 : end]
    after = pattern[end + 1 :]

    parts = _split_unescaped(inside, ",")
    if len(parts) <= 1:
        # Literal braces: escape so the segment translator keeps them as-is.
        return [f"{before}\\{{{inside}\\}}{alt}" for alt in _expand_braces(after)]

    out: list[str] = []
    for part in parts:
        out.extend(_expand_braces(f"{before}{part}{after}"))
    return out


def _translate_segment(segment: str, pattern: str) -> str:
    """Translate one path segment of a glob into a regex fragment."""
    out: list[str] = [] if segment.startswith(".") else [_NO_DOT]
    i, n = 0, len(segment)
    while i < n:
        c = segment[i]
        i += 1
        if c == "*":
            # Collapse runs of '*' inside a segment.
            while i < n and segment[i] == "*":
                i += 1
            out.append("[^/]*")
        elif c == "?":
            out.append("[^/]")
        elif c == "\\":
            if i >= n:
                raise FilterConstructionError(f"Trailing escape in pattern: {pattern!r}", pattern=pattern)
            out.append(re.escape(segment[i]))
            i += 1
        elif c == "[":
            j = i
            if j < n and segment[j] in "!^":
                j += 1
            if j < n and segment[j] == "]":
                j += 1
            while j < n and segment[j] != "]":
                j += 1
            if j >= n:
                raise FilterConstructionError(
                    f"Unterminated character class in pattern: {pattern!r}", pattern=pattern
                )
            stuff = segment[i:j].replace("\\", "\\\\")
            i = j + 1
            if stuff[:1] in ("!", "^"):
                stuff = "^" + stuff[1:]
            elif stuff[:1] == "[":
                stuff = "\\" + stuff
            out.append(f"(?!/)[{stuff}]")
        else:
            out.append(re.escape(c))
    return "".join(out)


def _translate(pattern: str) -> str:
    segments = [s for s in pattern.split("/") if s not in ("", ".")]
    if not segments:
        raise FilterConstructionError(f"Pattern has no path segments: {pattern!r}", pattern=pattern)

    out: list[str] = []
    prev_globstar = False
    for idx, seg in enumerate(segments):
        last = idx == len(segments) - 1
        if seg == _GLOBSTAR:
            if prev_globstar:
                continue
            if idx > 0:
                out.append("/")
            if last:
                out.append(f"{_NO_DOT}[^/]+(?:/{_NO_DOT}[^/]+)*")
            else:
                out.append(f"(?:{_NO_DOT}[^/]+/)*")
            prev_globstar = True
            continue
        if idx > 0 and not prev_globstar:
            out.append("/")
        out.append(_translate_segment(seg, pattern))
        prev_globstar = False
    return "".join(out)


def compile_pattern(pattern: str) -> Pattern[str]:
    """Compile a glob pattern into a regex matching relative POSIX paths.

    Raises:
        FilterConstructionError: If the pattern is empty or malformed
    """
    if not isinstance(pattern, str) or not pattern.strip():
        raise FilterConstructionError(f"Empty glob pattern: {pattern!r}", pattern=str(pattern))

    # Leading slash is treated as root-relative.
    body = pattern.lstrip("/")
    alternatives = [_translate(alt) for alt in _expand_braces(body)]
    try:
        return re.compile(r"\A(?:" + "|".join(alternatives) + r")\Z")
    except re.error as exc:
        raise FilterConstructionError(f"Invalid glob pattern {pattern!r}: {exc}", pattern=pattern) from exc


class PathFilter:
    """Decide whether a path qualifies for mirroring.

    A path matches iff, relative to ``root``, it matches at least one include
    pattern and no exclude pattern. Malformed patterns match nothing; each is
    reported once, when the filter is built.
    """

    def __init__(self, spec: FilterSpec, root: Union[str, Path]) -> None:
        self.spec = spec
        self.root = Path(os.path.abspath(root))
        self._include = self._compile_all(spec.include_patterns)
        self._exclude = self._compile_all(spec.exclude_patterns)

    def _compile_all(self, patterns: Iterable[str]) -> list[Pattern[str]]:
        compiled: list[Pattern[str]] = []
        for pattern in patterns:
            try:
                compiled.append(compile_pattern(pattern))
            except FilterConstructionError as exc:
                logger.warning("Ignoring glob pattern that cannot be compiled: %s", exc)
        return compiled

    def relativize(self, path: Union[str, Path]) -> Optional[str]:
        """Return ``path`` relative to the root as a POSIX string.

        Returns None for the root itself and for paths outside it.
        """
        candidate = Path(path)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        try:
            rel = os.path.relpath(os.path.normpath(candidate), self.root)
        except ValueError:
            # Different drive on Windows.
            return None
        posix = PurePosixPath(Path(rel).as_posix())
        if str(posix) == "." or posix.parts[0] == "..":
            return None
        return str(posix)

    def matches_relative(self, rel_path: str) -> bool:
        if not any(p.match(rel_path) for p in self._include):
            return False
        return not any(p.match(rel_path) for p in self._exclude)

    def matches(self, path: Union[str, Path]) -> bool:
        rel = self.relativize(path)
        if rel is None:
            return False
        return self.matches_relative(rel)

    def __repr__(self) -> str:
        return f"PathFilter(root={str(self.root)!r}, spec={self.spec!r})"


@dataclass(frozen=True)
class Uninitialized:
    """Filter not built yet: the project root is still unknown."""


@dataclass(frozen=True)
class Ready:
    filter: PathFilter


FilterState = Union[Uninitialized, Ready]


@dataclass
class LazyFilter:
    """Builds the session's PathFilter on first use, then reuses it.

    The root is only known once the host reports it, so construction is
    deferred to the first ``get(root)`` call. Later calls return the same
    instance regardless of the root passed, since the root is fixed for a
    session.
    """

    spec: FilterSpec = field(default_factory=FilterSpec)
    state: FilterState = field(default_factory=Uninitialized)

    @property
    def ready(self) -> bool:
        return isinstance(self.state, Ready)

    def get(self, root: Union[str, Path]) -> PathFilter:
        if isinstance(self.state, Ready):
            return self.state.filter
        built = PathFilter(self.spec, root)
        self.state = Ready(built)
        logger.debug("Built %r", built)
        return built


__all__ = [
    "DEFAULT_INCLUDE_PATTERNS",
    "DEFAULT_EXCLUDE_PATTERNS",
    "FilterSpec",
    "PathFilter",
    "LazyFilter",
    "FilterState",
    "Uninitialized",
    "Ready",
    "compile_pattern",
]
