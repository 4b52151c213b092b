"""The frozen tile catalog.

A :class:`TileCatalog` maps permanent tile identifiers to their
definitions, partitioned by :class:`~kodu.tiles.TileKind`.  It is built
once from a declarative table and never mutated afterwards, so it can be
shared process-wide without locking.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType

from kodu.tiles import TileDefn, TileKind

logger = logging.getLogger(__name__)


class UnresolvedTileError(LookupError):
    """A tile identifier has no definition in the catalog partition."""

    def __init__(self, kind: TileKind, tid: str) -> None:
        self.kind = kind
        self.tid = tid
        super().__init__(f"unknown {kind.name.lower()} tile id {tid!r}")


class TileCatalog:
    """Read-only registry of tile definitions keyed by identifier.

    Partitions keep declaration order, which breaks ties when suggestion
    lists are sorted by weight.

    Usage::

        catalog = build_catalog([see, kodu_filter, move])
        see = catalog.lookup(TileKind.SENSOR, "S2")
    """

    __slots__ = ("_partitions",)

    def __init__(self, partitions: Mapping[TileKind, Mapping[str, TileDefn]]) -> None:
        frozen = {
            kind: MappingProxyType(dict(partitions.get(kind, {})))
            for kind in TileKind
        }
        object.__setattr__(self, "_partitions", MappingProxyType(frozen))

    def __setattr__(self, name: str, value: object) -> None:
        msg = "TileCatalog is read-only"
        raise AttributeError(msg)

    # -- Partitions ----------------------------------------------------------

    def partition(self, kind: TileKind) -> Mapping[str, TileDefn]:
        """Return the read-only mapping for one tile kind."""
        return self._partitions[kind]

    @property
    def sensors(self) -> Mapping[str, TileDefn]:
        return self._partitions[TileKind.SENSOR]

    @property
    def filters(self) -> Mapping[str, TileDefn]:
        return self._partitions[TileKind.FILTER]

    @property
    def actuators(self) -> Mapping[str, TileDefn]:
        return self._partitions[TileKind.ACTUATOR]

    @property
    def modifiers(self) -> Mapping[str, TileDefn]:
        return self._partitions[TileKind.MODIFIER]

    # -- Lookup --------------------------------------------------------------

    def lookup(self, kind: TileKind, tid: str) -> TileDefn:
        """Resolve ``tid`` in the ``kind`` partition.

        Raises:
            UnresolvedTileError: If no tile of that kind has this identifier.
        """
        tile = self._partitions[kind].get(tid)
        if tile is None:
            raise UnresolvedTileError(kind, tid)
        return tile

    def get(self, kind: TileKind, tid: str) -> TileDefn | None:
        """Resolve ``tid`` in the ``kind`` partition, or return ``None``."""
        return self._partitions[kind].get(tid)

    def __contains__(self, tid: object) -> bool:
        if not isinstance(tid, str):
            return False
        return any(tid in p for p in self._partitions.values())

    def __iter__(self) -> Iterator[TileDefn]:
        for kind in TileKind:
            yield from self._partitions[kind].values()

    def __len__(self) -> int:
        return sum(len(p) for p in self._partitions.values())

    def __repr__(self) -> str:
        counts = ", ".join(
            f"{kind.name.lower()}s={len(self._partitions[kind])}" for kind in TileKind
        )
        return f"TileCatalog({counts})"

    def to_dict(self) -> dict[str, object]:
        """Dump every definition, grouped by kind (for inspection)."""
        return {
            f"{kind.name.lower()}s": [t.to_dict() for t in self._partitions[kind].values()]
            for kind in TileKind
        }


def build_catalog(tiles: Iterable[TileDefn]) -> TileCatalog:
    """Build a frozen catalog from a declarative sequence of tiles.

    Raises:
        ValueError: If an identifier is declared more than once, in any
            partition.
    """
    partitions: dict[TileKind, dict[str, TileDefn]] = {kind: {} for kind in TileKind}
    seen: dict[str, TileKind] = {}
    for tile in tiles:
        if tile.tid in seen:
            msg = (
                f"duplicate tile id {tile.tid!r} "
                f"({seen[tile.tid].name.lower()} and {tile.kind.name.lower()})"
            )
            raise ValueError(msg)
        seen[tile.tid] = tile.kind
        partitions[tile.kind][tile.tid] = tile

    catalog = TileCatalog(partitions)
    logger.debug("Built %r", catalog)
    return catalog
