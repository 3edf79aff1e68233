from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Iterable, Iterator, List, NamedTuple, Optional, Tuple

import numpy as np

from .errors import EmptySitesError, InvalidBoundsError, OutOfBoundsError
from .site import coordinates_of

UNOWNED = -1


class GridIdx(NamedTuple):
    """
    Integer coordinate pair, used both as a Point and as a grid address.
    """
    x: int
    y: int

    def coordinates(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def inside(self, bounds: "BoundingBox") -> bool:
        return bounds.inside(self)

    def neighbors(self, bounds: "BoundingBox") -> List["GridIdx"]:
        return bounds.neighbors(self)


@dataclass(frozen=True)
class BoundingBox:
    """
    Finite coordinate domain: [x_offset, x_offset+width) x [y_offset, y_offset+height).
    """
    x_offset: int
    y_offset: int
    width: int
    height: int

    def __post_init__(self):
        if int(self.width) <= 0 or int(self.height) <= 0:
            raise InvalidBoundsError(
                f"Bounding box needs positive dimensions, got {self.width}x{self.height}"
            )
        # normalize numpy integers so hashing and repr stay plain
        for name in ("x_offset", "y_offset", "width", "height"):
            object.__setattr__(self, name, int(getattr(self, name)))

    @classmethod
    def fit_to_sites(cls, sites: Iterable) -> "BoundingBox":
        """
        Tight axis-aligned box covering every site's coordinates.
        """
        coords = np.array([coordinates_of(s) for s in sites], dtype=np.int64)
        if len(coords) == 0:
            raise EmptySitesError("Sites must not be empty")

        min_x, min_y = coords.min(axis=0)
        max_x, max_y = coords.max(axis=0)
        return cls(
            x_offset=int(min_x),
            y_offset=int(min_y),
            width=int(max_x - min_x + 1),
            height=int(max_y - min_y + 1),
        )

    @property
    def size(self) -> int:
        return self.width * self.height

    def dimensions(self) -> Tuple[int, int]:
        return (self.width, self.height)

    def inside(self, idx) -> bool:
        x, y = coordinates_of(idx)
        ax = x - self.x_offset
        ay = y - self.y_offset
        return 0 <= ax < self.width and 0 <= ay < self.height

    def translate_idx(self, idx) -> Tuple[int, int]:
        """
        Zero-based (column, row) of a coordinate. Callers check inside() first.
        """
        x, y = coordinates_of(idx)
        return (x - self.x_offset, y - self.y_offset)

    def offset(self, idx) -> int:
        x, y = self.translate_idx(idx)
        return x + y * self.width

    def coordinates_iter(self) -> "CoordinateRange":
        return CoordinateRange(self)

    def neighbors(self, idx) -> List[GridIdx]:
        """
        In-bounds axis neighbors, always in north, east, south, west order.
        """
        x, y = coordinates_of(idx)
        candidates = (
            GridIdx(x, y + 1),  # north
            GridIdx(x + 1, y),  # east
            GridIdx(x, y - 1),  # south
            GridIdx(x - 1, y),  # west
        )
        return [c for c in candidates if self.inside(c)]


class CoordinateRange(Sequence):
    """
    Every GridIdx of a box in row-major order (x varies fastest).
    Lazy and restartable: iterating twice yields the same sequence.
    """

    def __init__(self, bounds: BoundingBox):
        self._bounds = bounds

    def __len__(self) -> int:
        return self._bounds.size

    def __getitem__(self, i):
        if isinstance(i, slice):
            return [self[j] for j in range(*i.indices(len(self)))]
        n = len(self)
        if i < 0:
            i += n
        if not 0 <= i < n:
            raise IndexError("coordinate index out of range")
        row, col = divmod(i, self._bounds.width)
        return GridIdx(self._bounds.x_offset + col, self._bounds.y_offset + row)

    def __iter__(self) -> Iterator[GridIdx]:
        b = self._bounds
        for y in range(b.y_offset, b.y_offset + b.height):
            for x in range(b.x_offset, b.x_offset + b.width):
                yield GridIdx(x, y)

    def __contains__(self, idx) -> bool:
        try:
            return self._bounds.inside(idx)
        except (TypeError, IndexError):
            return False

    def __repr__(self) -> str:
        return f"CoordinateRange({self._bounds!r})"


@dataclass(frozen=True)
class Cell:
    """
    Snapshot of one grid cell's ownership state.
    """
    coordinates: GridIdx
    owner: Optional[int]
    contested: bool


class Grid:
    """
    Dense ownership state for every cell of a bounding box.
    owners: int64, -1 for unowned; contested: bool.
    """

    def __init__(self, bounds: BoundingBox):
        self._bounds = bounds
        self._owners = np.full(bounds.size, UNOWNED, dtype=np.int64)
        self._contested = np.zeros(bounds.size, dtype=bool)

    @property
    def bounds(self) -> BoundingBox:
        return self._bounds

    def __len__(self) -> int:
        return self._bounds.size

    def _offset(self, idx) -> int:
        if not self._bounds.inside(idx):
            raise OutOfBoundsError(coordinates_of(idx), self._bounds)
        return self._bounds.offset(idx)

    def __getitem__(self, idx) -> Cell:
        i = self._offset(idx)
        return self._cell_at(i, GridIdx(*coordinates_of(idx)))

    def _cell_at(self, i: int, coords: GridIdx) -> Cell:
        owner = int(self._owners[i])
        return Cell(
            coordinates=coords,
            owner=None if owner == UNOWNED else owner,
            contested=bool(self._contested[i]),
        )

    def owner(self, idx) -> Optional[int]:
        owner = int(self._owners[self._offset(idx)])
        return None if owner == UNOWNED else owner

    def clear(self) -> None:
        self._owners.fill(UNOWNED)
        self._contested.fill(False)

    def claim_cells(
        self,
        indices: Iterable,
        claimant: int,
    ) -> Tuple[List[GridIdx], List[Tuple[GridIdx, int]]]:
        """
        Try to take every index for `claimant`, in input order.

        Returns (claimed, contested): cells won outright, and (idx, previous_owner)
        pairs whose owner was cleared and which now await arbitration.
        """
        claimed: List[GridIdx] = []
        contested: List[Tuple[GridIdx, int]] = []

        for idx in indices:
            i = self._offset(idx)
            owner = int(self._owners[i])

            if owner == claimant:
                continue
            if owner == UNOWNED:
                if not self._contested[i]:
                    self._owners[i] = claimant
                    claimed.append(idx)
                # else: still pending arbitration from an earlier claim
            else:
                self._owners[i] = UNOWNED
                self._contested[i] = True
                contested.append((idx, owner))

        return claimed, contested

    def resolve(self, idx, owner: int) -> None:
        """
        Settle a contested cell in favour of `owner`.
        """
        i = self._offset(idx)
        self._owners[i] = owner
        self._contested[i] = False

    def cells(self) -> Iterator[Cell]:
        for i, coords in enumerate(self._bounds.coordinates_iter()):
            yield self._cell_at(i, coords)

    def owner_array(self) -> np.ndarray:
        """
        (height, width) copy of the owner ids, -1 where unowned.
        """
        return self._owners.reshape(self._bounds.height, self._bounds.width).copy()

    def owned_count(self) -> int:
        return int(np.count_nonzero(self._owners != UNOWNED))
