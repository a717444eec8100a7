"""
Error Types

Exceptions raised while loading key material and while processing a
cipher stream. All of them are ``ValueError`` subclasses so callers
that only care about bad input can catch that.
"""

from typing import Optional


class MirrorCipherError(ValueError):
    """Base class for all mirrorcipher errors."""


class InvalidSymbolError(MirrorCipherError):
    """An unexpected symbol was seen while loading mirror cells."""

    def __init__(self, position: int, symbol: int):
        self.position = position
        self.symbol = symbol
        super().__init__(
            f"Invalid mirror symbol {symbol!r} at definition offset {position}"
        )


class CorruptFieldError(MirrorCipherError):
    """A field instance is incomplete, malformed or not ready for traversal."""


class DuplicatePerimeterValueError(CorruptFieldError):
    """Two perimeter slots of the same field hold the same byte value."""

    def __init__(self, field_index: int, value: int, slots):
        self.field_index = field_index
        self.value = value
        self.slots = tuple(slots)
        super().__init__(
            f"Field {field_index}: perimeter value 0x{value:02x} "
            f"appears in slots {list(self.slots)}"
        )


class CharacterNotFoundError(MirrorCipherError):
    """The input byte is not on the active field's perimeter."""

    def __init__(self, byte: int, field_index: Optional[int] = None):
        self.byte = byte
        self.field_index = field_index
        where = "" if field_index is None else f" of field {field_index}"
        super().__init__(f"Byte 0x{byte:02x} is not on the perimeter{where}")


class KeyFileError(MirrorCipherError):
    """A key file could not be read, parsed or unsealed."""
