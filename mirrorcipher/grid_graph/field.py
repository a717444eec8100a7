"""
Mirror Field Graph

This module implements a single mirror field: an N x N grid of mirror
cells surrounded by 4N perimeter slots, stored as an arena of nodes
with index-based neighbor links.

Node numbering:
    0 .. N*N-1          interior cells, row-major
    N*N .. N*N+4N-1     perimeter slots

Perimeter slot numbering:
    0 .. N-1            top edge, slot c sits above column c
    N .. 2N-1           right edge, slot N+r sits right of row r
    2N .. 3N-1          bottom edge, slot 2N+c sits below column c
    3N .. 4N-1          left edge, slot 3N+r sits left of row r
"""

from enum import IntEnum
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..errors import CorruptFieldError, DuplicatePerimeterValueError

# Marks a missing neighbor in the link table
NO_LINK = -1


class Mirror(IntEnum):
    """Orientation of a mirror cell."""
    EMPTY = 0
    FORWARD = 1
    BACKWARD = 2
    STRAIGHT = 3


class Direction(IntEnum):
    """Step direction, also the column of the neighbor table."""
    UP = 0
    DOWN = 1
    LEFT = 2
    RIGHT = 3


OPPOSITE = {
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
    Direction.LEFT: Direction.RIGHT,
    Direction.RIGHT: Direction.LEFT,
}

# Definition symbols (as bytes) for each orientation
SYMBOL_TO_MIRROR = {
    ord('/'): Mirror.FORWARD,
    ord('\\'): Mirror.BACKWARD,
    ord('-'): Mirror.STRAIGHT,
    ord(' '): Mirror.EMPTY,
}
MIRROR_TO_SYMBOL = {mirror: symbol for symbol, mirror in SYMBOL_TO_MIRROR.items()}

# 90 degree reflections; STRAIGHT and EMPTY pass the ray through
DEFLECTION: Dict[Mirror, Dict[Direction, Direction]] = {
    Mirror.FORWARD: {
        Direction.DOWN: Direction.LEFT,
        Direction.LEFT: Direction.DOWN,
        Direction.RIGHT: Direction.UP,
        Direction.UP: Direction.RIGHT,
    },
    Mirror.BACKWARD: {
        Direction.DOWN: Direction.RIGHT,
        Direction.LEFT: Direction.UP,
        Direction.RIGHT: Direction.DOWN,
        Direction.UP: Direction.LEFT,
    },
}

# Forward -> Straight -> Backward -> Forward; Empty never turns
ROTATION = {
    Mirror.FORWARD: Mirror.STRAIGHT,
    Mirror.STRAIGHT: Mirror.BACKWARD,
    Mirror.BACKWARD: Mirror.FORWARD,
    Mirror.EMPTY: Mirror.EMPTY,
}

# Probe order used to find a perimeter slot's inward direction
_ENTRY_PROBE = (Direction.DOWN, Direction.UP, Direction.LEFT, Direction.RIGHT)


def deflect(mirror: int, direction: Direction) -> Direction:
    """
    Return the direction a ray leaves a cell with, given how it entered.

    Args:
        mirror: Orientation of the cell
        direction: Direction the ray was travelling

    Returns:
        The new travel direction
    """
    table = DEFLECTION.get(Mirror(mirror))
    if table is None:
        return direction
    return table[direction]


class MirrorField:
    """
    One unit of key material: an N x N mirror grid and its 4N perimeter slots.

    Orientations and perimeter values are mutable; the link table is
    built once by link() and never changes afterwards.
    """

    def __init__(self, grid_size: int):
        """
        Initialize an empty, unlinked field.

        Args:
            grid_size: Side length N of the mirror grid
        """
        self.grid_size = grid_size
        self.cell_count = grid_size * grid_size
        self.slot_count = grid_size * 4

        self.cells = np.full(self.cell_count, Mirror.EMPTY, dtype=np.int8)
        self.perimeter = np.zeros(self.slot_count, dtype=np.int16)
        self.neighbors = np.full((self.cell_count + self.slot_count, 4), NO_LINK, dtype=np.int32)
        self.linked = False

    # Node addressing

    def cell_node(self, row: int, col: int) -> int:
        return row * self.grid_size + col

    def slot_node(self, slot: int) -> int:
        return self.cell_count + slot

    def is_slot(self, node: int) -> bool:
        return node >= self.cell_count

    def node_slot(self, node: int) -> int:
        return node - self.cell_count

    def cell_position(self, node: int) -> Tuple[int, int]:
        return divmod(node, self.grid_size)

    # Setup

    def validate(self, field_index: int = 0) -> None:
        """
        Check mirror orientations and perimeter uniqueness.

        Args:
            field_index: Position of this field in its bank, for error messages

        Raises:
            CorruptFieldError: If a cell holds an unknown orientation
            DuplicatePerimeterValueError: If two slots hold the same value
        """
        legal = np.isin(self.cells, [int(m) for m in Mirror])
        if not legal.all():
            bad = int(np.flatnonzero(~legal)[0])
            raise CorruptFieldError(
                f"Field {field_index}: cell {self.cell_position(bad)} "
                f"holds invalid orientation {int(self.cells[bad])}"
            )

        if (self.perimeter < 0).any() or (self.perimeter > 255).any():
            raise CorruptFieldError(f"Field {field_index}: perimeter value out of byte range")

        values, counts = np.unique(self.perimeter, return_counts=True)
        if (counts > 1).any():
            value = int(values[counts > 1][0])
            raise DuplicatePerimeterValueError(
                field_index, value, np.flatnonzero(self.perimeter == value).tolist()
            )

    def _join(self, a: int, b: int, direction: Direction) -> None:
        # b lies in `direction` from a
        self.neighbors[a, direction] = b
        self.neighbors[b, OPPOSITE[direction]] = a

    def link(self) -> None:
        """
        Build the vertical and horizontal chains between slots and cells.

        Each column runs top slot -> cells top to bottom -> bottom slot, and
        each row runs left slot -> cells left to right -> right slot.
        """
        n = self.grid_size
        self.neighbors.fill(NO_LINK)

        # Linking up/down
        for col in range(n):
            prev = self.slot_node(col)
            for row in range(n):
                node = self.cell_node(row, col)
                self._join(prev, node, Direction.DOWN)
                prev = node
            self._join(prev, self.slot_node(2 * n + col), Direction.DOWN)

        # Linking left/right
        for row in range(n):
            prev = self.slot_node(3 * n + row)
            for col in range(n):
                node = self.cell_node(row, col)
                self._join(prev, node, Direction.RIGHT)
                prev = node
            self._join(prev, self.slot_node(n + row), Direction.RIGHT)

        self.linked = True

    # Traversal support

    def neighbor(self, node: int, direction: Direction) -> int:
        return int(self.neighbors[node, direction])

    def entry_direction(self, slot: int) -> Direction:
        """
        Return the single inward direction of a perimeter slot.

        Args:
            slot: Perimeter slot index

        Returns:
            The direction from the slot into the grid

        Raises:
            CorruptFieldError: If the field is not linked
        """
        node = self.slot_node(slot)
        for direction in _ENTRY_PROBE:
            if self.neighbors[node, direction] != NO_LINK:
                return direction
        raise CorruptFieldError(f"Perimeter slot {slot} has no inward link; field not linked")

    def find_slot(self, value: int) -> Optional[int]:
        """Return the slot currently holding `value`, or None."""
        hits = np.flatnonzero(self.perimeter == value)
        if hits.size == 0:
            return None
        return int(hits[0])

    def swap_slots(self, a: int, b: int) -> None:
        self.perimeter[a], self.perimeter[b] = self.perimeter[b], self.perimeter[a]

    def rotate(self, node: int) -> None:
        self.cells[node] = ROTATION[Mirror(int(self.cells[node]))]

    # State access

    def mirror_symbols(self) -> bytes:
        """Return the orientations as definition symbols, row-major."""
        return bytes(MIRROR_TO_SYMBOL[Mirror(int(m))] for m in self.cells)

    def perimeter_bytes(self) -> bytes:
        return bytes(int(v) for v in self.perimeter)

    def rows(self) -> List[str]:
        """Return the grid as one string of symbols per row."""
        symbols = self.mirror_symbols().decode('ascii')
        n = self.grid_size
        return [symbols[r * n:(r + 1) * n] for r in range(n)]

    def snapshot(self) -> Tuple[bytes, bytes]:
        return self.mirror_symbols(), self.perimeter_bytes()

    def copy(self) -> 'MirrorField':
        """Return an independent copy, including the link table."""
        clone = MirrorField(self.grid_size)
        clone.cells = self.cells.copy()
        clone.perimeter = self.perimeter.copy()
        clone.neighbors = self.neighbors.copy()
        clone.linked = self.linked
        return clone
