"""
  Toroidal Game of Life universe.

  A fixed-size grid of Dead/Alive cells whose edges wrap around, advanced
  one generation at a time by Conway's rules:

    alive, 2 or 3 live neighbours  ->  survives
    dead, exactly 3 live neighbours ->  born
    everything else                 ->  dead / stays dead

  Cells are stored row-major (cell (r, c) at index r * width + c) either one
  byte per cell or one bit per cell. Both layouts behave identically; the
  bit layout exists for renderers that want the packed export.

  The universe is single-owner and synchronous. Views returned by cells()
  are read-only and only valid until the next mutating call.
"""

from __future__ import annotations

from enum import Enum, IntEnum
from typing import Iterable, Sequence, Union

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import convolve

# ── Defaults ────────────────────────────────────────────────────────────
DEFAULT_WIDTH: int = 64
DEFAULT_HEIGHT: int = 64

# ── Text rendering glyphs ───────────────────────────────────────────────
ALIVE_GLYPH = "◼"
DEAD_GLYPH = "◻"

# ── Convolution kernel (Moore neighbourhood, centre excluded) ──────────
NEIGHBOR_KERNEL: NDArray = np.array([[1, 1, 1], [1, 0, 1], [1, 1, 1]], dtype=np.int16)


# ═══════════════════════════════════════════════════════════════════════
#  Errors
# ═══════════════════════════════════════════════════════════════════════

class UniverseError(Exception):
    """Base class for universe errors."""


class OutOfBoundsError(UniverseError, IndexError):
    """A (row, col) coordinate outside the grid was passed in."""

    def __init__(self, row: int, col: int, width: int, height: int) -> None:
        super().__init__(
            f"cell ({row}, {col}) is outside the {width}x{height} universe"
        )
        self.row = row
        self.col = col
        self.width = width
        self.height = height


class UnknownPatternError(UniverseError, KeyError):
    """No pattern is registered under the requested name."""


# ═══════════════════════════════════════════════════════════════════════
#  Cell state & seeding
# ═══════════════════════════════════════════════════════════════════════

class Cell(IntEnum):
    DEAD = 0
    ALIVE = 1


class SeedPolicy(str, Enum):
    """How a freshly constructed universe is populated."""

    RANDOM = "random"
    STRIPED = "striped"
    DEAD = "dead"


# ═══════════════════════════════════════════════════════════════════════
#  Pattern library
# ═══════════════════════════════════════════════════════════════════════

PatternTable = tuple[tuple[int, int, Cell], ...]


def _alive(cells: list[tuple[int, int]]) -> PatternTable:
    """Turn a list of live (Δrow, Δcol) offsets into a pattern table."""
    return tuple((dr, dc, Cell.ALIVE) for dr, dc in cells)


# Glider is a full 3×3 template centred on the anchor, so stamping it
# also clears whatever was in its bounding box.
_GLIDER: PatternTable = (
    (-1, -1, Cell.DEAD), (-1, 0, Cell.ALIVE), (-1, 1, Cell.DEAD),
    (0, -1, Cell.DEAD), (0, 0, Cell.DEAD), (0, 1, Cell.ALIVE),
    (1, -1, Cell.ALIVE), (1, 0, Cell.ALIVE), (1, 1, Cell.ALIVE),
)

PATTERNS: dict[str, PatternTable] = {
    "glider": _GLIDER,
    "blinker": _alive([(0, -1), (0, 0), (0, 1)]),
    "block": _alive([(0, 0), (0, 1), (1, 0), (1, 1)]),
    "beehive": _alive([(0, 1), (0, 2), (1, 0), (1, 3), (2, 1), (2, 2)]),
    "toad": _alive([(0, 1), (0, 2), (0, 3), (1, 0), (1, 1), (1, 2)]),
    "beacon": _alive([(0, 0), (0, 1), (1, 0), (2, 3), (3, 2), (3, 3)]),
    "lwss": _alive([
        (0, 1), (0, 4), (1, 0), (2, 0), (2, 4),
        (3, 0), (3, 1), (3, 2), (3, 3),
    ]),
    "r_pentomino": _alive([(0, 1), (0, 2), (1, 0), (1, 1), (2, 1)]),
    "pulsar": _alive([
        (0, 2), (0, 3), (0, 4), (0, 8), (0, 9), (0, 10),
        (2, 0), (2, 5), (2, 7), (2, 12),
        (3, 0), (3, 5), (3, 7), (3, 12),
        (4, 0), (4, 5), (4, 7), (4, 12),
        (5, 2), (5, 3), (5, 4), (5, 8), (5, 9), (5, 10),
        (7, 2), (7, 3), (7, 4), (7, 8), (7, 9), (7, 10),
        (8, 0), (8, 5), (8, 7), (8, 12),
        (9, 0), (9, 5), (9, 7), (9, 12),
        (10, 0), (10, 5), (10, 7), (10, 12),
        (12, 2), (12, 3), (12, 4), (12, 8), (12, 9), (12, 10),
    ]),
}

PATTERN_NAMES: list[str] = list(PATTERNS)

Pattern = Union[str, Iterable[Sequence[int]]]


def pattern_table(pattern: Pattern) -> PatternTable:
    """Resolve a pattern name, or normalise an explicit triple table."""
    if isinstance(pattern, str):
        try:
            return PATTERNS[pattern]
        except KeyError:
            raise UnknownPatternError(pattern) from None
    return tuple((int(dr), int(dc), Cell(state)) for dr, dc, state in pattern)


# ═══════════════════════════════════════════════════════════════════════
#  Cell storage
# ═══════════════════════════════════════════════════════════════════════

class ByteCells:
    """One uint8 per cell. The raw view is the storage array itself."""

    kind: str = "byte"

    def __init__(self, size: int) -> None:
        self._size = size
        self._data: NDArray[np.uint8] = np.zeros(size, dtype=np.uint8)

    def __len__(self) -> int:
        return self._size

    def get(self, idx: int) -> Cell:
        return Cell(int(self._data[idx]))

    def set(self, idx: int, cell: Cell) -> None:
        self._data[idx] = 1 if cell else 0

    def to_array(self) -> NDArray[np.uint8]:
        return self._data.copy()

    def load(self, states: NDArray) -> None:
        """Replace every cell at once from a flat array of 0/1 states."""
        data = (np.asarray(states).reshape(-1) != 0).astype(np.uint8)
        if data.size != self._size:
            raise ValueError(f"expected {self._size} cells, got {data.size}")
        self._data = data

    def as_raw_view(self) -> NDArray[np.uint8]:
        view = self._data.view()
        view.flags.writeable = False
        return view


class BitCells:
    """One bit per cell, little bit order: cell n is bit n % 8 of byte n // 8."""

    kind: str = "bit"

    def __init__(self, size: int) -> None:
        self._size = size
        self._bits: NDArray[np.uint8] = np.zeros((size + 7) // 8, dtype=np.uint8)

    def __len__(self) -> int:
        return self._size

    def get(self, idx: int) -> Cell:
        return Cell((int(self._bits[idx >> 3]) >> (idx & 7)) & 1)

    def set(self, idx: int, cell: Cell) -> None:
        mask = 1 << (idx & 7)
        if cell:
            self._bits[idx >> 3] |= mask
        else:
            self._bits[idx >> 3] &= ~mask & 0xFF

    def to_array(self) -> NDArray[np.uint8]:
        return np.unpackbits(self._bits, count=self._size, bitorder="little")

    def load(self, states: NDArray) -> None:
        flat = np.asarray(states).reshape(-1) != 0
        if flat.size != self._size:
            raise ValueError(f"expected {self._size} cells, got {flat.size}")
        self._bits = np.packbits(flat, bitorder="little")

    def as_raw_view(self) -> NDArray[np.uint8]:
        view = self._bits.view()
        view.flags.writeable = False
        return view


STORAGE_KINDS: dict[str, type] = {
    ByteCells.kind: ByteCells,
    BitCells.kind: BitCells,
}

CellStorage = Union[ByteCells, BitCells]


def make_storage(kind: str, size: int) -> CellStorage:
    try:
        factory = STORAGE_KINDS[kind]
    except KeyError:
        raise ValueError(
            f"unknown storage kind {kind!r} (expected one of {sorted(STORAGE_KINDS)})"
        ) from None
    return factory(size)


def _check_dimension(name: str, value: int) -> int:
    value = int(value)
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


# ═══════════════════════════════════════════════════════════════════════
#  The universe
# ═══════════════════════════════════════════════════════════════════════

class Universe:
    """
    A toroidal Game of Life grid.

    Coordinates passed in from outside are bounds-checked and raise
    OutOfBoundsError; only neighbour and pattern offsets wrap. A grid with
    a zero dimension holds no cells and tick/stamp/clear do nothing.
    """

    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        seed: SeedPolicy | str = SeedPolicy.DEAD,
        storage: str = "byte",
        rng: np.random.Generator | None = None,
    ) -> None:
        self._width: int = _check_dimension("width", width)
        self._height: int = _check_dimension("height", height)
        self._storage_kind: str = storage
        self._cells: CellStorage = make_storage(storage, self._width * self._height)
        self.generation: int = 0
        self._seed(SeedPolicy(seed), rng)

    @classmethod
    def new(
        cls,
        seed: SeedPolicy | str = SeedPolicy.STRIPED,
        storage: str = "byte",
        rng: np.random.Generator | None = None,
    ) -> Universe:
        """A DEFAULT_WIDTH × DEFAULT_HEIGHT universe seeded by `seed`."""
        return cls(DEFAULT_WIDTH, DEFAULT_HEIGHT, seed=seed, storage=storage, rng=rng)

    # ── Seeding ─────────────────────────────────────────────────────

    def _seed(self, policy: SeedPolicy, rng: np.random.Generator | None) -> None:
        size = len(self._cells)
        if policy is SeedPolicy.RANDOM:
            rng = rng if rng is not None else np.random.default_rng()
            self._cells.load(rng.random(size) < 0.5)
        elif policy is SeedPolicy.STRIPED:
            i = np.arange(size)
            self._cells.load((i % 2 == 0) | (i % 7 == 0))

    # ── Dimensions & storage ────────────────────────────────────────

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def storage_kind(self) -> str:
        return self._storage_kind

    def __len__(self) -> int:
        return len(self._cells)

    def index(self, row: int, col: int) -> int:
        if not (0 <= row < self._height and 0 <= col < self._width):
            raise OutOfBoundsError(row, col, self._width, self._height)
        return row * self._width + col

    def get(self, row: int, col: int) -> Cell:
        return self._cells.get(self.index(row, col))

    def set(self, row: int, col: int, cell: Cell) -> None:
        self._cells.set(self.index(row, col), Cell(cell))

    def cells(self) -> NDArray[np.uint8]:
        """Read-only view of the underlying storage (bytes or packed bits)."""
        return self._cells.as_raw_view()

    def cell_array(self) -> NDArray[np.uint8]:
        """Cells as a (height, width) uint8 array. Always a copy."""
        return self._cells.to_array().reshape(self._height, self._width)

    def population(self) -> int:
        return int(self._cells.to_array().sum())

    # ── Neighbours ──────────────────────────────────────────────────

    def live_neighbor_count(self, row: int, col: int) -> int:
        self.index(row, col)
        count = 0
        for dr in (-1, 0, 1):
            for dc in (-1, 0, 1):
                if dr == 0 and dc == 0:
                    continue
                n_row = (row + dr) % self._height
                n_col = (col + dc) % self._width
                count += self._cells.get(n_row * self._width + n_col)
        return count

    def neighbor_counts(self) -> NDArray[np.int16]:
        """Live-neighbour count of every cell, wrapping at the edges."""
        return self._neighbor_counts(self.cell_array())

    @staticmethod
    def _neighbor_counts(grid: NDArray) -> NDArray[np.int16]:
        if grid.size == 0:
            return np.zeros(grid.shape, dtype=np.int16)
        # Wrap one cell of border explicitly so 1- and 2-wide axes count
        # exactly what live_neighbor_count does.
        padded = np.pad(grid.astype(np.int16), 1, mode="wrap")
        return convolve(padded, NEIGHBOR_KERNEL, mode="constant")[1:-1, 1:-1]

    # ── Simulation ──────────────────────────────────────────────────

    def tick(self) -> None:
        """Advance one generation.

        Every rule is evaluated against the same snapshot; the next grid is
        built separately and swapped in whole.
        """
        if len(self._cells) == 0:
            return

        g = self.cell_array()
        n = self._neighbor_counts(g)

        alive = g.view(np.bool_)
        n_is_3 = n == 3
        birth = ~alive & n_is_3
        survive = alive & (n_is_3 | (n == 2))

        self._cells.load(birth | survive)
        self.generation += 1

    # ── Mutation ────────────────────────────────────────────────────

    def toggle_cell(self, row: int, col: int) -> None:
        idx = self.index(row, col)
        self._cells.set(idx, Cell.DEAD if self._cells.get(idx) else Cell.ALIVE)

    def set_cells(self, coords: Iterable[tuple[int, int]]) -> None:
        """Set every listed cell Alive; other cells keep their state.

        All coordinates are checked before any cell is written.
        """
        indices = [self.index(row, col) for row, col in coords]
        for idx in indices:
            self._cells.set(idx, Cell.ALIVE)

    def _wrap_set(self, row: int, col: int, cell: Cell) -> None:
        self._cells.set(
            (row % self._height) * self._width + (col % self._width), cell
        )

    def stamp_pattern(self, row: int, col: int, pattern: Pattern = "glider") -> None:
        """Write `pattern` anchored at (row, col), wrapping past the edges."""
        table = pattern_table(pattern)
        if len(self._cells) == 0:
            return
        self.index(row, col)
        for dr, dc, state in table:
            self._wrap_set(row + dr, col + dc, state)

    def draw_glider(self, row: int, col: int) -> None:
        self.stamp_pattern(row, col, "glider")

    def set_width(self, width: int) -> None:
        """Change the width. Resets every cell to Dead."""
        self._width = _check_dimension("width", width)
        self.clear()

    def set_height(self, height: int) -> None:
        """Change the height. Resets every cell to Dead."""
        self._height = _check_dimension("height", height)
        self.clear()

    def clear(self) -> None:
        self._cells = make_storage(self._storage_kind, self._width * self._height)
        self.generation = 0

    def all_dead(self) -> Universe:
        """A new universe with the same dimensions and storage, all Dead."""
        return Universe(
            self._width, self._height, seed=SeedPolicy.DEAD, storage=self._storage_kind
        )

    # ── Rendering ───────────────────────────────────────────────────

    def render(self) -> str:
        lines: list[str] = []
        for row in self.cell_array():
            lines.append("".join(ALIVE_GLYPH if c else DEAD_GLYPH for c in row))
            lines.append("\n")
        return "".join(lines)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return (
            f"Universe(width={self._width}, height={self._height}, "
            f"storage={self._storage_kind!r}, generation={self.generation})"
        )
