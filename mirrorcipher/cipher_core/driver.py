"""
Mirror Cipher Driver

This module provides the cipher stream: it feeds bytes one at a time
through the field bank, selecting fields round-robin and rolling the
perimeter after each byte. The cipher is symmetric, so the same
operation on a freshly loaded bank decrypts.
"""

import functools
from typing import Callable, Dict, Optional, Union

from ..config import DEFAULT_GRID_SIZE, DEFAULT_FIELD_COUNT
from ..errors import CharacterNotFoundError, CorruptFieldError
from ..field_bank.loader import FieldBank
from ..grid_graph.field import MirrorField
from ..traversal.engine import encrypt_one_byte
from .rolling import PerimeterRoller

# on_step(field_index, field, node)
StepObserver = Callable[[int, MirrorField, int], None]


class MirrorCipher:
    """
    One cipher stream over one field bank.

    The session owns every piece of state that changes between bytes: the
    field cursor, the roll cursors and the bank itself. Independent streams
    need independent banks.
    """

    def __init__(self, bank: FieldBank, on_step: Optional[StepObserver] = None):
        """
        Initialize a stream.

        Args:
            bank: A loaded, validated and linked field bank
            on_step: Optional observer called at each traversal step

        Raises:
            CorruptFieldError: If the bank is not linked
        """
        if not bank.is_linked:
            raise CorruptFieldError("Field bank must be linked before use")

        self.bank = bank
        self.on_step = on_step
        self.field_index = 0
        self.roller = PerimeterRoller(bank.grid_size, bank.field_count)
        self.bytes_processed = 0

    def process(self, byte: int) -> int:
        """
        Encrypt or decrypt a single byte.

        Args:
            byte: The input byte

        Returns:
            The output byte

        Raises:
            CharacterNotFoundError: If the byte is not on the active field's
                perimeter; the stream cannot continue after this
        """
        m = self.field_index
        field = self.bank.fields[m]

        step = None
        if self.on_step is not None:
            step = functools.partial(self.on_step, m, field)

        mutate = functools.partial(self.roller.roll, field)

        try:
            result = encrypt_one_byte(byte, field, mutate=mutate, on_step=step)
        except CharacterNotFoundError:
            raise CharacterNotFoundError(byte, m) from None

        # Cycle mirror field index
        self.field_index = (m + 1) % self.bank.field_count
        self.bytes_processed += 1

        return result

    def process_bytes(self, data: Union[bytes, bytearray]) -> bytes:
        """
        Process a run of bytes in stream order.

        Args:
            data: The input bytes

        Returns:
            The output bytes
        """
        return bytes(self.process(b) for b in data)

    # The cipher is its own inverse
    encrypt = process_bytes
    decrypt = process_bytes

    def state(self) -> Dict[str, int]:
        """Return the stream cursors."""
        return {
            'field_index': self.field_index,
            'g1': self.roller.g1,
            'g2': self.roller.g2,
            'roll_counter': self.roller.counter,
            'bytes_processed': self.bytes_processed,
        }


def encrypt(data: bytes, definition: bytes,
            grid_size: int = DEFAULT_GRID_SIZE,
            field_count: int = DEFAULT_FIELD_COUNT) -> bytes:
    """
    Convenience function to encrypt a message with a fresh field bank.

    Args:
        data: The plaintext
        definition: The field definition stream
        grid_size: Side length N of each mirror grid (default: 64)
        field_count: Number K of fields (default: 8)

    Returns:
        The ciphertext
    """
    bank = FieldBank.from_definition(definition, grid_size, field_count)
    return MirrorCipher(bank).encrypt(data)


def decrypt(data: bytes, definition: bytes,
            grid_size: int = DEFAULT_GRID_SIZE,
            field_count: int = DEFAULT_FIELD_COUNT) -> bytes:
    """
    Convenience function to decrypt a message with a fresh field bank.

    Args:
        data: The ciphertext
        definition: The field definition stream
        grid_size: Side length N of each mirror grid (default: 64)
        field_count: Number K of fields (default: 8)

    Returns:
        The plaintext
    """
    bank = FieldBank.from_definition(definition, grid_size, field_count)
    return MirrorCipher(bank).decrypt(data)
