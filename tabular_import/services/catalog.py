from __future__ import annotations

from collections.abc import Iterable, Iterator

from ..models.reference import ReferenceEntity

"""Reference catalog: display name -> id lookup.

Loaded once before validation from the reference data provider and shared
read-only afterwards. Lookup is case-insensitive but otherwise exact (no
trimming of inner text, no fuzzy or partial matches).
"""

__all__ = [
    "ReferenceCatalog",
]


def _key(name: str) -> str:
    return name.casefold()


class ReferenceCatalog:
    """Read-only snapshot of referenceable entities."""

    def __init__(self, entities: Iterable[ReferenceEntity] = ()) -> None:
        self._entities: tuple[ReferenceEntity, ...] = tuple(entities)
        self._by_name: dict[str, int] = {}
        for entity in self._entities:
            # 同名が複数ある場合は先勝ち
            self._by_name.setdefault(_key(entity.display_name), entity.id)

    def lookup(self, name: str) -> int | None:
        """Return the id for ``name`` or None when it is not in the catalog."""
        if not name:
            return None
        return self._by_name.get(_key(name))

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[ReferenceEntity]:
        return iter(self._entities)
