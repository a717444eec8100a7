"""
Visualization Package

This package draws mirror fields and animates traversals for inspection.
It only reads cipher state.
"""

from .render import FieldRenderer, render_field

__all__ = ['FieldRenderer', 'render_field']
