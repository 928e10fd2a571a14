"""Gitignore-style ignore rules loaded from a .frameoignore file."""

import os
from typing import Iterable, List, Optional

import pathspec

from .protocols import LoggerProtocol

IGNORE_FILENAME = ".frameoignore"


def user_config_ignore_path() -> str:
    """Per-user rule file, ``~/.config/frameoignore``."""
    return os.path.join(os.path.expanduser("~"), ".config", "frameoignore")


def candidate_ignore_paths(explicit_path: Optional[str], input_dir: str) -> List[str]:
    """
    Rule file locations in priority order.

    1. Explicit path (if provided)
    2. ~/.config/frameoignore
    3. <input_dir>/.frameoignore
    4. ./.frameoignore
    """
    candidates = []
    if explicit_path:
        candidates.append(explicit_path)
    candidates.append(user_config_ignore_path())
    candidates.append(os.path.join(input_dir, IGNORE_FILENAME))
    candidates.append(IGNORE_FILENAME)
    return candidates


def resolve_ignore_file(explicit_path: Optional[str], input_dir: str) -> Optional[str]:
    """Return the first existing rule file, or None."""
    for path in candidate_ignore_paths(explicit_path, input_dir):
        if os.path.isfile(path):
            return path
    return None


def _to_posix(path: str) -> str:
    return path.replace(os.sep, "/")


class IgnoreMatcher:
    """
    Checks paths against a compiled set of gitignore patterns.

    Later patterns override earlier ones, ``!`` negates and ``*`` never
    crosses ``/``. A matcher built without patterns ignores nothing. The
    compiled spec is never mutated, so one instance is shared by all workers.
    """

    def __init__(self, spec: Optional[pathspec.PathSpec] = None, source: Optional[str] = None):
        self._spec = spec
        self.source = source

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: Optional[str] = None) -> "IgnoreMatcher":
        """Compile rules; blank lines and ``#`` comments are skipped."""
        return cls(pathspec.GitIgnoreSpec.from_lines(lines), source=source)

    @classmethod
    def from_file(cls, path: str) -> "IgnoreMatcher":
        with open(path, encoding="utf-8") as f:
            return cls.from_lines(f.read().splitlines(), source=path)

    @classmethod
    def load(
        cls,
        explicit_path: Optional[str],
        input_dir: str,
        logger: Optional[LoggerProtocol] = None,
    ) -> "IgnoreMatcher":
        """
        Build a matcher from the highest-priority rule file that exists.

        An unreadable rule file is reported and yields an empty matcher.
        """
        path = resolve_ignore_file(explicit_path, input_dir)
        if path is None:
            return cls()

        try:
            matcher = cls.from_file(path)
        except (OSError, UnicodeDecodeError) as e:
            if logger:
                logger.warning("Failed to load ignore file", path=path, error=str(e))
            return cls()

        if logger:
            logger.info("Loading .frameoignore", path=path)
        return matcher

    @property
    def is_empty(self) -> bool:
        """True when no rule was compiled, e.g. for a file of only comments."""
        if self._spec is None:
            return True
        # pathspec keeps comment lines as patterns whose include is None
        return all(p.include is None for p in self._spec.patterns)

    def matches(self, relative_path: str, is_dir: bool = False) -> bool:
        """
        Return True if the path is ignored.

        Directories are tested with a trailing slash so that directory-only
        patterns (``photos/``) apply to them.
        """
        if self.is_empty:
            return False

        path = _to_posix(relative_path)
        if is_dir:
            path = path.rstrip("/") + "/"
        return self._spec.match_file(path)

    def matches_any(self, paths: Iterable[str], is_dir: bool = False) -> bool:
        """Return True if any of the path forms is ignored."""
        return any(self.matches(path, is_dir) for path in paths)
