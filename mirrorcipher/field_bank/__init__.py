"""
Field Bank Package

This package implements loading, validation and linking of the bank of
mirror fields that make up the cipher key.
"""

from .loader import FieldBank

__all__ = ['FieldBank']
