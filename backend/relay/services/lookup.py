"""Result of a soft-fail collaborator call (time or live search)."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Lookup:
    """
    Either a value from a collaborator or the reason it is missing.
    `skipped` marks a lookup that was never attempted (e.g. no credential configured).
    """

    value: str | None = None
    error: str | None = None
    skipped: bool = False

    @classmethod
    def found(cls, value: str) -> Lookup:
        return cls(value=value)

    @classmethod
    def failed(cls, error: str) -> Lookup:
        return cls(error=error)

    @classmethod
    def skip(cls, reason: str) -> Lookup:
        return cls(error=reason, skipped=True)

    @property
    def ok(self) -> bool:
        return self.value is not None

    def or_else(self, fallback: str) -> str:
        """The value if present, otherwise `fallback`."""
        return self.value if self.value is not None else fallback
