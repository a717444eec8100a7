"""
Traversal Engine

This module maps one byte to another by shooting a ray from the perimeter
slot holding the byte through the mirror grid until it reaches another
perimeter slot. Every mirror crossed by the ray rotates one step once the
exit slot is known.
"""

from dataclasses import dataclass, field as dataclass_field
from typing import Callable, List, Optional

from ..errors import CharacterNotFoundError, CorruptFieldError
from ..grid_graph.field import MirrorField, deflect

# Called with the node the ray is about to leave
StepHook = Callable[[int], None]


@dataclass
class TraversalResult:
    """Outcome of one ray traversal."""
    entry_slot: int
    exit_slot: int
    entry_value: int
    exit_value: int
    path: List[int] = dataclass_field(default_factory=list)


def trace(field: MirrorField, entry_slot: int,
          on_step: Optional[StepHook] = None) -> TraversalResult:
    """
    Follow a ray from a perimeter slot without changing the field.

    Args:
        field: A linked mirror field
        entry_slot: Perimeter slot the ray starts from
        on_step: Optional hook called with each node before leaving it

    Returns:
        The entry/exit slots and values, and the interior cells crossed in
        order (a cell crossed twice appears twice)

    Raises:
        CorruptFieldError: If the field is not linked or the ray does not
            leave the grid
    """
    if not field.linked:
        raise CorruptFieldError("Mirror field must be linked before traversal")

    # Each cell has four ports, so a ray crosses it at most twice
    max_crossings = 2 * field.cell_count

    node = field.slot_node(entry_slot)
    direction = field.entry_direction(entry_slot)
    path = []

    while True:
        if on_step is not None:
            on_step(node)

        node = field.neighbor(node, direction)
        if field.is_slot(node):
            break

        path.append(node)
        if len(path) > max_crossings:
            raise CorruptFieldError(f"Ray from slot {entry_slot} did not leave the grid")

        direction = deflect(int(field.cells[node]), direction)

    exit_slot = field.node_slot(node)
    return TraversalResult(
        entry_slot=entry_slot,
        exit_slot=exit_slot,
        entry_value=int(field.perimeter[entry_slot]),
        exit_value=int(field.perimeter[exit_slot]),
        path=path,
    )


def traverse(field: MirrorField, byte: int,
             on_step: Optional[StepHook] = None) -> TraversalResult:
    """
    Traverse the field from the slot holding `byte` and rotate the mirrors crossed.

    Rotations are applied after the exit slot is known, innermost crossing
    first, so every crossing deflects using the orientations the field had
    when the byte arrived.

    Args:
        field: A linked mirror field
        byte: The input byte
        on_step: Optional hook called with each node before leaving it

    Returns:
        The traversal result

    Raises:
        CharacterNotFoundError: If no perimeter slot holds `byte`
    """
    entry_slot = field.find_slot(byte)
    if entry_slot is None:
        raise CharacterNotFoundError(byte)

    result = trace(field, entry_slot, on_step)

    for node in reversed(result.path):
        field.rotate(node)

    return result


def collision_fixup(field: MirrorField, sv: int, ev: int) -> int:
    """
    Choose the output byte for a traversal from `sv` to `ev`.

    If the slot at (sv + ev) mod 4N holds exactly that index, the input
    byte is returned unchanged; otherwise the exit byte is returned. The
    rule is symmetric in sv and ev, so decryption makes the same choice.

    Args:
        field: The field the traversal ran on
        sv: Entry slot value
        ev: Exit slot value

    Returns:
        The output byte
    """
    idx = (sv + ev) % field.slot_count
    if int(field.perimeter[idx]) == idx:
        return sv
    return ev


def encrypt_one_byte(byte: int, field: MirrorField,
                     mutate: Optional[Callable[[int, int], None]] = None,
                     on_step: Optional[StepHook] = None) -> int:
    """
    Map one input byte to one output byte using one field.

    Args:
        byte: The input byte
        field: A linked mirror field; its mirrors are rotated along the path
        mutate: Optional callback run with (sv, ev) after the traversal and
            before the output is chosen
        on_step: Optional hook called with each node before leaving it

    Returns:
        The output byte
    """
    result = traverse(field, byte, on_step)
    sv, ev = result.entry_value, result.exit_value

    if mutate is not None:
        mutate(sv, ev)

    return collision_fixup(field, sv, ev)
