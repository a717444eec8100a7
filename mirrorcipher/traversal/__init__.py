"""
Traversal Package

This package implements the ray traversal through a mirror field and
the mirror rotation that follows it.
"""

from .engine import TraversalResult, trace, traverse, collision_fixup, encrypt_one_byte

__all__ = ['TraversalResult', 'trace', 'traverse', 'collision_fixup', 'encrypt_one_byte']
