"""
Field Bank Loader

This module implements the field bank: K mirror fields loaded from a
single definition stream, validated, and linked before use.

Definition stream layout:
    K * N*N mirror symbols ('/', '\\', '-', ' '), field 0 first, row-major
    K * 4N perimeter byte values, field 0 first
Anything after that is ignored.
"""

import logging
from typing import List, Tuple, Union

from ..config import DEFAULT_GRID_SIZE, DEFAULT_FIELD_COUNT, check_geometry
from ..errors import CorruptFieldError, InvalidSymbolError
from ..grid_graph.field import MirrorField, SYMBOL_TO_MIRROR

logger = logging.getLogger(__name__)


class FieldBank:
    """
    An ordered set of mirror fields used round-robin by one cipher stream.

    A bank goes through three stages: loading (load_cell/load), validation
    (validate) and linking (link). Only a linked bank may be traversed.
    """

    def __init__(self,
                 grid_size: int = DEFAULT_GRID_SIZE,
                 field_count: int = DEFAULT_FIELD_COUNT):
        """
        Initialize an empty bank.

        Args:
            grid_size: Side length N of each mirror grid (default: 64)
            field_count: Number K of fields (default: 8)
        """
        check_geometry(grid_size, field_count)

        self.grid_size = grid_size
        self.field_count = field_count
        self.fields = [MirrorField(grid_size) for _ in range(field_count)]

        self._cells_per_field = grid_size * grid_size
        self._slots_per_field = grid_size * 4
        self._mirror_total = field_count * self._cells_per_field
        self._position = 0
        self._validated = False

    def __len__(self) -> int:
        return self.field_count

    def __getitem__(self, index: int) -> MirrorField:
        return self.fields[index]

    @property
    def expected_length(self) -> int:
        """Number of definition symbols a complete bank consumes."""
        return self._mirror_total + self.field_count * self._slots_per_field

    @property
    def is_complete(self) -> bool:
        return self._position == self.expected_length

    @property
    def is_linked(self) -> bool:
        return all(field.linked for field in self.fields)

    def load_cell(self, symbol: int) -> bool:
        """
        Consume one definition symbol.

        Args:
            symbol: The next byte of the definition stream

        Returns:
            True if the symbol was consumed, False if the bank is already
            full and the symbol was ignored

        Raises:
            InvalidSymbolError: If a mirror-phase symbol is not '/', '\\', '-' or ' '
        """
        i = self._position

        if i < self._mirror_total:
            # Mirror phase
            mirror = SYMBOL_TO_MIRROR.get(symbol)
            if mirror is None:
                raise InvalidSymbolError(i, symbol)
            field, cell = divmod(i, self._cells_per_field)
            self.fields[field].cells[cell] = mirror

        elif i < self.expected_length:
            # Perimeter phase
            field, slot = divmod(i - self._mirror_total, self._slots_per_field)
            self.fields[field].perimeter[slot] = symbol

        else:
            return False

        self._position += 1
        self._validated = False
        return True

    def load(self, definition: Union[bytes, bytearray]) -> int:
        """
        Consume symbols from a definition stream until the bank is full.

        Args:
            definition: The definition bytes

        Returns:
            The number of symbols consumed
        """
        consumed = 0
        for symbol in definition:
            if not self.load_cell(symbol):
                break
            consumed += 1

        if consumed < len(definition):
            logger.debug("Ignored %d trailing definition bytes", len(definition) - consumed)
        return consumed

    def validate(self) -> None:
        """
        Validate every field.

        Raises:
            CorruptFieldError: If the bank is not fully loaded or a cell is invalid
            DuplicatePerimeterValueError: If a field repeats a perimeter value
        """
        if not self.is_complete:
            raise CorruptFieldError(
                f"Field bank incomplete: {self._position} of "
                f"{self.expected_length} definition symbols loaded"
            )

        for index, field in enumerate(self.fields):
            field.validate(index)

        self._validated = True
        logger.debug("Validated %d mirror fields of size %d", self.field_count, self.grid_size)

    def link(self) -> None:
        """
        Link every field. Must run after validate().

        Raises:
            CorruptFieldError: If the bank has not been validated
        """
        if not self._validated:
            raise CorruptFieldError("Field bank must be validated before linking")

        for field in self.fields:
            field.link()

        logger.info("Linked %d mirror fields (%dx%d grid, %d perimeter slots)",
                    self.field_count, self.grid_size, self.grid_size, self._slots_per_field)

    @classmethod
    def from_definition(cls,
                        definition: Union[bytes, bytearray],
                        grid_size: int = DEFAULT_GRID_SIZE,
                        field_count: int = DEFAULT_FIELD_COUNT) -> 'FieldBank':
        """
        Load, validate and link a bank in one call.

        Args:
            definition: The definition bytes
            grid_size: Side length N of each mirror grid
            field_count: Number K of fields

        Returns:
            A linked bank, ready for traversal
        """
        bank = cls(grid_size, field_count)
        bank.load(definition)
        bank.validate()
        bank.link()
        return bank

    def to_definition(self) -> bytes:
        """
        Serialize the current state back into a definition stream.

        Loading the result into a fresh bank reproduces the current mirror
        orientations and perimeter values.
        """
        mirrors = b''.join(field.mirror_symbols() for field in self.fields)
        perimeters = b''.join(field.perimeter_bytes() for field in self.fields)
        return mirrors + perimeters

    def snapshot(self) -> List[Tuple[bytes, bytes]]:
        return [field.snapshot() for field in self.fields]

    def copy(self) -> 'FieldBank':
        """Return an independent copy in the same stage."""
        clone = FieldBank(self.grid_size, self.field_count)
        clone.fields = [field.copy() for field in self.fields]
        clone._position = self._position
        clone._validated = self._validated
        return clone
