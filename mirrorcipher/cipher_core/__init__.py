"""
Cipher Core Package

This package implements the cipher stream: round-robin field selection,
perimeter rolling, and the per-byte encryption/decryption operation.
"""

from .driver import MirrorCipher, encrypt, decrypt
from .rolling import PerimeterRoller

__all__ = ['MirrorCipher', 'PerimeterRoller', 'encrypt', 'decrypt']
