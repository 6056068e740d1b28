from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "ReferenceEntity",
]


@dataclass(frozen=True)
class ReferenceEntity:
    """A previously persisted entity that rows may reference by display name."""
    id: int
    display_name: str
