"""
MirrorCipher - Mirror Field Substitution Cipher Library

This library implements a symmetric, stateful substitution cipher whose
key material is a bank of small square grids of rotating mirrors
surrounded by a perimeter of character slots.

Key Features:
- Light-ray traversal through a grid of reflective cells
- Mirror rotation after every traversal
- Perimeter "rolling" that drifts the byte/position mapping over time
- Round-robin use of several independent mirror fields
- Key generation, passphrase derivation and sealed key files
- Optional step-by-step visualization of the traversal

"""

__version__ = '0.1.0'
__author__ = 'MirrorCipher Team'
