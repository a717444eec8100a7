"""
Mirror Field Rendering

Draws a mirror field as a grid: perimeter values in hex around the edge,
mirror symbols inside, and the cell the ray currently occupies
highlighted. FieldRenderer plugs into MirrorCipher as a step observer to
animate encryption.
"""

import time
from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from ..grid_graph.field import MirrorField

HIGHLIGHT_STYLE = 'black on white'


def render_field(field: MirrorField,
                 highlight: Optional[int] = None,
                 title: Optional[str] = None) -> Table:
    """
    Build a table showing the field.

    Args:
        field: The field to draw
        highlight: Node to highlight; perimeter nodes are not highlighted
        title: Optional table title

    Returns:
        A rich Table of (N+2) x (N+2) cells
    """
    n = field.grid_size
    perimeter = field.perimeter
    rows = field.rows()

    table = Table(title=title, show_header=False, box=box.SIMPLE, padding=(0, 0),
                  show_edge=False, pad_edge=False)
    for _ in range(n + 2):
        table.add_column(justify='right', width=3, no_wrap=True)

    def label(value) -> Text:
        return Text(f"{int(value):2x}", style='dim')

    corner = Text('')

    table.add_row(corner, *[label(perimeter[c]) for c in range(n)], corner)

    for r in range(n):
        cells = []
        for c in range(n):
            node = field.cell_node(r, c)
            style = HIGHLIGHT_STYLE if node == highlight else ''
            cells.append(Text(rows[r][c], style=style))
        table.add_row(label(perimeter[3 * n + r]), *cells, label(perimeter[n + r]))

    table.add_row(corner, *[label(perimeter[2 * n + c]) for c in range(n)], corner)

    return table


class FieldRenderer:
    """
    Step observer that redraws the active field at every traversal step.
    """

    def __init__(self, console: Optional[Console] = None, delay_ms: int = 0,
                 clear: bool = True):
        """
        Initialize the renderer.

        Args:
            console: Console to draw on (default: a new stderr console)
            delay_ms: Pause after each frame, in milliseconds
            clear: Whether to clear the screen before each frame
        """
        self.console = console or Console(stderr=True)
        self.delay_ms = delay_ms
        self.clear = clear
        self.frames = 0

    def __call__(self, field_index: int, field: MirrorField, node: int) -> None:
        if self.clear:
            self.console.clear()
        self.console.print(render_field(field, highlight=node, title=f"field {field_index}"))
        self.frames += 1

        if self.delay_ms > 0:
            time.sleep(self.delay_ms / 1000)
