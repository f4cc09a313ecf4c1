"""
Knowledge stores: what each robot (and the station) believes about the map.

Every robot carries its own KnowledgeStore, a grid of optional KnowledgeRecords
the same size as the terrain. Robots write to it while sensing; the station holds
the authoritative "global memory". Stores only meet when a robot docks at the
station, where they are merged cell by cell.

Merge semantics (per-cell last-writer-wins register):
- A cell known on one side only takes that side's record.
- Known on both sides: the record with the strictly greater timestamp wins.
- Equal timestamps: the authoritative (station) side wins; if the tile snapshots
  differ this counts as a conflict. Conflicts are tallied, never raised.

The merge is a pure function of its two inputs, so merging the same pair twice
gives the same store and reports no new conflicts the second time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .environment.grid import OutOfBoundsError
from .schemas import Coord, RobotKind, Tile


class KnowledgeRecord(BaseModel):
    """One timestamped observation of a cell and who made it."""

    model_config = ConfigDict(frozen=True)

    discovered: bool = Field(True, description="Whether the cell has been observed")
    tile_snapshot: Tile = Field(..., description="Tile seen at observation time")
    timestamp: int = Field(..., ge=0, description="Station tick of the observation")
    source_id: int = Field(..., description="Id of the observing robot")
    source_kind: RobotKind = Field(..., description="Kind of the observing robot")


def merge_records(
    authoritative: Optional[KnowledgeRecord],
    incoming: Optional[KnowledgeRecord],
) -> Tuple[Optional[KnowledgeRecord], bool]:
    """Merge two views of the same cell.

    Args:
        authoritative: Record held by the side that wins ties (the station)
        incoming: Record brought by the other side (a docking robot)

    Returns:
        (winning record, conflict) where conflict is True only for equal
        timestamps carrying different tile snapshots.
    """
    authoritative = _known(authoritative)
    incoming = _known(incoming)
    if incoming is None:
        return authoritative, False
    if authoritative is None:
        return incoming, False
    if incoming.timestamp > authoritative.timestamp:
        return incoming, False
    if incoming.timestamp < authoritative.timestamp:
        return authoritative, False
    return authoritative, incoming.tile_snapshot != authoritative.tile_snapshot


def _known(record: Optional[KnowledgeRecord]) -> Optional[KnowledgeRecord]:
    if record is None or not record.discovered:
        return None
    return record


@dataclass
class MergeResult:
    """Outcome of merging two knowledge stores."""

    store: "KnowledgeStore"
    conflicts: int = 0
    conflict_cells: List[Coord] = field(default_factory=list)
    adopted: int = 0  # cells where the incoming record replaced or filled the authoritative one


class KnowledgeStore:
    """Grid of optional KnowledgeRecords owned by one robot or the station.

    Records for a cell only ever move forward in time: ``observe`` skips
    observations that are not newer, and ``record`` refuses older ones.
    """

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self._cells: List[List[Optional[KnowledgeRecord]]] = [[None] * width for _ in range(height)]
        self._discovered = 0

    def _check(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise OutOfBoundsError(x, y, self.width, self.height)

    def get(self, x: int, y: int) -> Optional[KnowledgeRecord]:
        self._check(x, y)
        return self._cells[y][x]

    def is_discovered(self, x: int, y: int) -> bool:
        record = self.get(x, y)
        return record is not None and record.discovered

    def record(self, x: int, y: int, record: KnowledgeRecord) -> None:
        """Store ``record`` for (x, y), replacing any record with an equal or older timestamp.

        Raises:
            ValueError: If the existing record is newer than ``record``
        """
        existing = self.get(x, y)
        if existing is not None and existing.timestamp > record.timestamp:
            raise ValueError(
                f"Refusing to rewind cell ({x}, {y}) from t={existing.timestamp} to t={record.timestamp}"
            )
        self._set(x, y, record)

    def observe(
        self,
        x: int,
        y: int,
        tile: Tile,
        timestamp: int,
        source_id: int,
        source_kind: RobotKind,
    ) -> bool:
        """Record a fresh sighting if the cell is unknown or known only from earlier ticks.

        Returns:
            True if the store changed.
        """
        existing = self.get(x, y)
        if existing is not None and existing.discovered and existing.timestamp >= timestamp:
            return False
        self._set(
            x,
            y,
            KnowledgeRecord(
                tile_snapshot=tile,
                timestamp=timestamp,
                source_id=source_id,
                source_kind=source_kind,
            ),
        )
        return True

    def _set(self, x: int, y: int, record: Optional[KnowledgeRecord]) -> None:
        before = _known(self._cells[y][x]) is not None
        after = _known(record) is not None
        self._cells[y][x] = record
        self._discovered += int(after) - int(before)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def discovered_count(self) -> int:
        return self._discovered

    def coverage(self) -> float:
        """Fraction of cells discovered, in [0, 1]."""
        return self._discovered / (self.width * self.height)

    def is_complete(self) -> bool:
        return self._discovered == self.width * self.height

    def records(self) -> Iterator[Tuple[Coord, KnowledgeRecord]]:
        """Yield ((x, y), record) for discovered cells in scan order."""
        for y, row in enumerate(self._cells):
            for x, record in enumerate(row):
                if _known(record) is not None:
                    yield (x, y), record

    def unexplored_cells(self) -> Iterator[Coord]:
        """Yield undiscovered cells in scan order."""
        for y, row in enumerate(self._cells):
            for x, record in enumerate(row):
                if _known(record) is None:
                    yield x, y

    def explored_mask(self) -> List[List[bool]]:
        return [[_known(record) is not None for record in row] for row in self._cells]

    def copy(self) -> "KnowledgeStore":
        # Records are frozen, so copying the row lists is enough.
        clone = KnowledgeStore(self.width, self.height)
        clone._cells = [list(row) for row in self._cells]
        clone._discovered = self._discovered
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KnowledgeStore):
            return NotImplemented
        return (self.width, self.height) == (other.width, other.height) and self._cells == other._cells

    def __repr__(self) -> str:
        return f"KnowledgeStore({self.width}x{self.height}, discovered={self._discovered})"

    # ------------------------------------------------------------------
    # Merge
    # ------------------------------------------------------------------

    @staticmethod
    def merge(authoritative: "KnowledgeStore", incoming: "KnowledgeStore") -> MergeResult:
        """Merge two stores cell by cell into a new store (inputs are untouched).

        Raises:
            ValueError: If the stores have different dimensions
        """
        if (authoritative.width, authoritative.height) != (incoming.width, incoming.height):
            raise ValueError(
                f"Cannot merge a {incoming.width}x{incoming.height} store into "
                f"a {authoritative.width}x{authoritative.height} store"
            )
        merged = KnowledgeStore(authoritative.width, authoritative.height)
        result = MergeResult(store=merged)
        for y in range(authoritative.height):
            for x in range(authoritative.width):
                ours = authoritative._cells[y][x]
                theirs = incoming._cells[y][x]
                winner, conflict = merge_records(ours, theirs)
                if conflict:
                    result.conflicts += 1
                    result.conflict_cells.append((x, y))
                elif winner is not None and winner is not _known(ours):
                    result.adopted += 1
                merged._set(x, y, winner)
        return result
