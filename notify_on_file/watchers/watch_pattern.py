"""Watch patterns - which files a watcher observes."""

import fnmatch
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

_BRACES = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """
    Expand {a,b} alternatives into separate glob patterns.

    Example:
        expand_braces("**/*.{js,ts}") == ["**/*.js", "**/*.ts"]
    """
    match = _BRACES.search(pattern)
    if not match:
        return [pattern]
    head, tail = pattern[:match.start()], pattern[match.end():]
    expanded = []
    for alternative in match.group(1).split(","):
        expanded.extend(expand_braces(f"{head}{alternative}{tail}"))
    return expanded


def glob_to_regex(pattern: str) -> "re.Pattern[str]":
    """
    Compile a glob where "*" and "?" stay within one path segment.

    "**/" matches zero or more directories and a bare "**" matches anything.
    """
    parts = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if pattern.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif c == "*":
            parts.append("[^/]*")
            i += 1
        elif c == "?":
            parts.append("[^/]")
            i += 1
        elif c == "[" and "]" in pattern[i + 2:]:
            end = pattern.index("]", i + 2)
            body = pattern[i + 1:end]
            if body.startswith("!"):
                body = "^" + body[1:]
            parts.append(f"[{body}]")
            i = end + 1
        else:
            parts.append(re.escape(c))
            i += 1
    return re.compile("".join(parts) + r"\Z")


def glob_match(relative_path: str, pattern: str, anchored: bool = False) -> bool:
    """
    Match a "/"-separated relative path against a glob.

    Unanchored patterns without "/" match the file name anywhere below the
    root, and a leading "**/" also matches files directly in the root.
    Anchored patterns match the whole relative path with "*" confined to one
    segment, so "*.js" only matches files directly in the root.
    """
    for candidate in expand_braces(pattern):
        if anchored:
            if glob_to_regex(candidate).match(relative_path):
                return True
            continue
        if "/" not in candidate:
            if fnmatch.fnmatch(relative_path.rsplit("/", 1)[-1], candidate):
                return True
            continue
        if fnmatch.fnmatch(relative_path, candidate):
            return True
        if candidate.startswith("**/") and fnmatch.fnmatch(relative_path, candidate[3:]):
            return True
    return False


@dataclass
class WatchPattern:
    """A glob scoped to one or more root directories.

    Attributes:
        glob: Glob relative to each root (e.g. "**/*.md")
        roots: Directories the glob is relative to
        anchored: Match the glob against the whole relative path
    """
    glob: str
    roots: list[Path] = field(default_factory=list)
    anchored: bool = False

    def relative_to_root(self, path: Path) -> Optional[str]:
        """Return path relative to the first root containing it, "/"-separated."""
        for root in self.roots:
            try:
                return path.relative_to(root).as_posix()
            except ValueError:
                continue
        return None

    def matches(self, path: Path) -> bool:
        """Check if a file matches this pattern."""
        relative = self.relative_to_root(path)
        if relative is None or relative == ".":
            return False
        return glob_match(relative, self.glob, anchored=self.anchored)

    def to_dict(self) -> dict:
        return {"glob": self.glob, "roots": [str(r) for r in self.roots]}
