"""
Perimeter Rolling

After every byte the entry and exit values are moved to two roll
positions on the perimeter, so that the same byte does not keep entering
the grid from the same slot. The roll positions sit half a perimeter
apart and advance by one after every full pass over the field bank.
"""

from ..grid_graph.field import MirrorField


class PerimeterRoller:
    """
    Shared roll cursors for one cipher stream.

    Attributes:
        g1: First roll position, starts at 0
        g2: Second roll position, starts at 2N
        counter: Bytes processed since the cursors last advanced
    """

    def __init__(self, grid_size: int, field_count: int):
        self.slot_count = grid_size * 4
        self.field_count = field_count
        self.g1 = 0
        self.g2 = grid_size * 2
        self.counter = 0

    def roll(self, field: MirrorField, sv: int, ev: int) -> None:
        """
        Move the entry and exit values of a traversal to the roll positions.

        Args:
            field: The field the traversal ran on
            sv: Entry slot value
            ev: Exit slot value
        """
        perimeter = field.perimeter
        a = int(perimeter[sv % self.slot_count])
        b = int(perimeter[ev % self.slot_count])

        # Get rotate order; ties only occur when 4N < 256
        if a > b or (a == b and sv > ev):
            x1, x2 = sv, ev
        else:
            x1, x2 = ev, sv

        field.swap_slots(field.find_slot(x1), self.g1)
        field.swap_slots(field.find_slot(x2), self.g2)

        self.counter += 1
        if self.counter == self.field_count:
            self.g1 = (self.g1 + 1) % self.slot_count
            self.g2 = (self.g2 + 1) % self.slot_count
            self.counter = 0
