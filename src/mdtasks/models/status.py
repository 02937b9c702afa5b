"""Task status value object."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


class InvalidStatusError(ValueError):
    """Raised when a status is blank after normalisation."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Invalid status: {value!r}")


def normalize_status(value: str) -> str:
    return value.strip().lower()


@dataclass(frozen=True)
class Status:
    """A trimmed, lower-cased, non-empty status label."""

    value: str

    @classmethod
    def create(cls, value: str) -> Status:
        normalized = normalize_status(value)
        if not normalized:
            raise InvalidStatusError(value)
        return cls(normalized)

    def is_done(self, done_statuses: Iterable[str]) -> bool:
        """True if this status is a member of the given done-status set."""
        return self.value in {normalize_status(s) for s in done_statuses}

    def __str__(self) -> str:
        return self.value
