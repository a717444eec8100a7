"""
Key Derivation Function and Key Management Package

This package implements generation and passphrase derivation of field
definitions, and key files sealed with Argon2id and AES-GCM.
"""

from .key_management import (
    FieldKey, derive_key, derive_definition, generate_definition, generate_salt,
    KDF_DEFAULT_PARAMS,
)

__all__ = [
    'FieldKey', 'derive_key', 'derive_definition', 'generate_definition', 'generate_salt',
    'KDF_DEFAULT_PARAMS',
]
