"""
Grid Graph Package

This package implements the mirror field itself: mirror orientations,
perimeter slots, and the index-based links between them.
"""

from .field import (
    MirrorField, Mirror, Direction, SYMBOL_TO_MIRROR, MIRROR_TO_SYMBOL,
    ROTATION, deflect,
)

__all__ = [
    'MirrorField', 'Mirror', 'Direction', 'SYMBOL_TO_MIRROR', 'MIRROR_TO_SYMBOL',
    'ROTATION', 'deflect',
]
