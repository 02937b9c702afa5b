"""
Hierarchical task path.

A path is the ordered chain of heading texts enclosing a task. The empty
path is "root" and is an ancestor of every other path.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

SEPARATOR = " / "
ROOT_LABEL = "(root)"


@dataclass(frozen=True)
class TaskPath:
    """Immutable ordered sequence of heading segments."""

    segments: Tuple[str, ...] = ()

    @classmethod
    def create(cls, segments: Iterable[str]) -> TaskPath:
        return cls(tuple(segments))

    @classmethod
    def root(cls) -> TaskPath:
        return cls(())

    @classmethod
    def from_string(cls, path_string: str) -> TaskPath:
        """
        Parse a display string such as "Work / Project A".

        Segments are split on "/", trimmed, and empty segments dropped, so a
        blank string (or the root label) yields the root path.
        """
        if not path_string.strip() or path_string.strip() == ROOT_LABEL:
            return cls(())
        parts = (s.strip() for s in path_string.split("/"))
        return cls(tuple(p for p in parts if p))

    def is_root(self) -> bool:
        return not self.segments

    @property
    def depth(self) -> int:
        return len(self.segments)

    def parent(self) -> TaskPath:
        if self.is_root():
            return self
        return TaskPath(self.segments[:-1])

    def child(self, segment: str) -> TaskPath:
        return TaskPath(self.segments + (segment,))

    def with_last(self, segment: str) -> TaskPath:
        """Return a copy whose final segment is replaced (root gains one)."""
        if self.is_root():
            return self.child(segment)
        return TaskPath(self.segments[:-1] + (segment,))

    def last(self) -> Optional[str]:
        return self.segments[-1] if self.segments else None

    def starts_with(self, prefix: TaskPath) -> bool:
        if prefix.depth > self.depth:
            return False
        return self.segments[: prefix.depth] == prefix.segments

    def to_list(self) -> list:
        return list(self.segments)

    def __str__(self) -> str:
        if self.is_root():
            return ROOT_LABEL
        return SEPARATOR.join(self.segments)
